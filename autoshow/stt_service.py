"""
Transcription service adapters.

Each adapter wraps one transcription provider behind the same ``invoke``
call: it takes a :class:`TranscriptionRequest` for a job whose audio sits at
``<job_id>.wav`` and returns the provider's raw result untouched.  Turning
that result into text is the job of :mod:`autoshow.transcript_formatter`.

Usage::

    from autoshow.stt_service import DeepgramBackend, TranscriptionRequest

    backend = DeepgramBackend(api_key="...")
    raw = backend.invoke(TranscriptionRequest(job_id="content/episode-1"))
"""

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from .options import DEFAULT_WHISPER_MODEL, WHISPER_MODELS
from .retries import REQUEST_TIMEOUT, transient_retry

logger = logging.getLogger(__name__)

DEEPGRAM_API_URL = "https://api.deepgram.com/v1/listen"
ASSEMBLY_API_URL = "https://api.assemblyai.com/v2"


@dataclass(frozen=True)
class TranscriptionRequest:
    job_id: str
    speaker_labels: bool = False
    model: Optional[str] = None

    @property
    def audio_path(self) -> str:
        return f"{self.job_id}.wav"

    @property
    def lrc_path(self) -> str:
        return f"{self.job_id}.lrc"


class TranscriptionBackend(ABC):
    """Base interface for transcription adapters."""

    name = "transcription"

    @abstractmethod
    def invoke(self, request: TranscriptionRequest) -> Any:
        raise NotImplementedError


@transient_retry
def _post(url: str, **kwargs: Any) -> requests.Response:
    response = requests.post(url, timeout=kwargs.pop("timeout", REQUEST_TIMEOUT), **kwargs)
    response.raise_for_status()
    return response


@transient_retry
def _get(url: str, **kwargs: Any) -> requests.Response:
    response = requests.get(url, timeout=kwargs.pop("timeout", REQUEST_TIMEOUT), **kwargs)
    response.raise_for_status()
    return response


def _run(command: List[str]) -> subprocess.CompletedProcess:
    logger.info("Running %s", " ".join(command))
    return subprocess.run(command, check=True, capture_output=True, text=True)


class WhisperCppBackend(TranscriptionBackend):
    """Run a local whisper.cpp build and return its LRC output.

    Args:
        whisper_dir: Checkout of whisper.cpp containing ``models/`` and the
            compiled binary.
        binary: Path of the CLI binary relative to ``whisper_dir``.
    """

    name = "whisper"

    def __init__(self, whisper_dir: str = "whisper.cpp", *, binary: str = "main"):
        self.whisper_dir = Path(whisper_dir)
        self.binary = binary

    def invoke(self, request: TranscriptionRequest) -> str:
        model = request.model or DEFAULT_WHISPER_MODEL
        model_path = self.whisper_dir / "models" / WHISPER_MODELS[model]
        if not model_path.exists():
            logger.info("Model %s not found, downloading", model)
            _run(["bash", str(self.whisper_dir / "models" / "download-ggml-model.sh"), model])
        _run(
            [
                str(self.whisper_dir / self.binary),
                "-m", str(model_path),
                "-f", request.audio_path,
                "-of", request.job_id,
                "--output-lrc",
            ]
        )
        logger.info("Transcript LRC file created: %s", request.lrc_path)
        return Path(request.lrc_path).read_text(encoding="utf-8")


class WhisperDockerBackend(TranscriptionBackend):
    """Run whisper.cpp inside a container that shares the working directory at ``/app``."""

    name = "whisperDocker"

    def __init__(self, container: str = "autoshow-whisper-1"):
        self.container = container

    def invoke(self, request: TranscriptionRequest) -> str:
        model = request.model or DEFAULT_WHISPER_MODEL
        model_path = f"/app/models/{WHISPER_MODELS[model]}"
        _run(
            [
                "docker", "exec", self.container,
                "/app/main",
                "-m", model_path,
                "-f", f"/app/{request.audio_path}",
                "-of", f"/app/{request.job_id}",
                "--output-lrc",
            ]
        )
        logger.info("Transcript LRC file created: %s", request.lrc_path)
        return Path(request.lrc_path).read_text(encoding="utf-8")


class DeepgramBackend(TranscriptionBackend):
    """Send the WAV file to Deepgram's prerecorded endpoint.

    Returns the full response JSON; the word list lives under
    ``results.channels[0].alternatives[0].words``.
    """

    name = "deepgram"

    def __init__(self, api_key: Optional[str], *, model: str = "nova-2", url: str = DEEPGRAM_API_URL):
        self.api_key = api_key
        self.model = model
        self.url = url

    def invoke(self, request: TranscriptionRequest) -> Dict[str, Any]:
        if not self.api_key:
            raise ValueError("DEEPGRAM_API_KEY is not set")
        params = {
            "model": request.model or self.model,
            "smart_format": "true",
            "punctuate": "true",
            "diarize": "true" if request.speaker_labels else "false",
        }
        audio = Path(request.audio_path).read_bytes()
        logger.info("Starting Deepgram transcription for %s", request.audio_path)
        response = _post(
            self.url,
            params=params,
            headers={"Authorization": f"Token {self.api_key}", "Content-Type": "audio/wav"},
            data=audio,
        )
        logger.info("Deepgram transcription complete for %s", request.audio_path)
        return response.json()


class AssemblyBackend(TranscriptionBackend):
    """Upload the WAV file to AssemblyAI and poll until the transcript is ready."""

    name = "assembly"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        model: str = "nano",
        poll_interval: float = 3.0,
        max_polls: int = 600,
        base_url: str = ASSEMBLY_API_URL,
    ):
        self.api_key = api_key
        self.model = model
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.base_url = base_url

    def invoke(self, request: TranscriptionRequest) -> Dict[str, Any]:
        if not self.api_key:
            raise ValueError("ASSEMBLY_API_KEY is not set")
        headers = {"Authorization": self.api_key}

        audio = Path(request.audio_path).read_bytes()
        logger.info("Uploading %s to AssemblyAI", request.audio_path)
        upload = _post(
            f"{self.base_url}/upload",
            headers={**headers, "Content-Type": "application/octet-stream"},
            data=audio,
        ).json()
        upload_url = upload.get("upload_url")
        if not upload_url:
            raise RuntimeError("Upload URL not returned by AssemblyAI")

        payload = {
            "audio_url": upload_url,
            "speech_model": request.model or self.model,
            "speaker_labels": bool(request.speaker_labels),
        }
        submitted = _post(f"{self.base_url}/transcript", headers=headers, json=payload).json()

        for _ in range(self.max_polls):
            transcript = _get(f"{self.base_url}/transcript/{submitted['id']}", headers=headers).json()
            if transcript.get("status") in ("completed", "error"):
                break
            time.sleep(self.poll_interval)
        else:
            raise TimeoutError(
                f"Transcript {submitted['id']} not ready after {self.max_polls} polls"
            )

        if transcript.get("status") == "error" or transcript.get("error"):
            raise RuntimeError(f"Transcription failed: {transcript.get('error')}")
        logger.info("AssemblyAI transcription complete for %s", request.audio_path)
        return transcript
