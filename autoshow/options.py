"""
Request option resolution.

HTTP bodies and CLI flags arrive as flat, untyped mappings.  ``resolve``
turns such a mapping into a :class:`JobConfig`: exactly one transcription
service, at most one language model service, and the handful of flags the
pipeline passes through untouched.  Keys it does not know are ignored so
newer clients can talk to older servers.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

from .errors import ConfigurationError

LLM_SERVICES = (
    "chatgpt",
    "claude",
    "cohere",
    "mistral",
    "octo",
    "llama",
    "ollama",
    "gemini",
    "deepseek",
    "fireworks",
)

TRANSCRIPT_SERVICES = ("whisper", "whisperDocker", "deepgram", "assembly")

PASS_THROUGH_OPTIONS = ("speakerLabels", "prompt", "noCleanUp", "order", "skip", "info", "item")

DEFAULT_TRANSCRIPT_SERVICE = "whisper"
DEFAULT_WHISPER_MODEL = "base"

# whisper.cpp model names mapped to their GGML weight files.
WHISPER_MODELS: Dict[str, str] = {
    "tiny": "ggml-tiny.bin",
    "tiny.en": "ggml-tiny.en.bin",
    "base": "ggml-base.bin",
    "base.en": "ggml-base.en.bin",
    "small": "ggml-small.bin",
    "small.en": "ggml-small.en.bin",
    "medium": "ggml-medium.bin",
    "medium.en": "ggml-medium.en.bin",
    "large-v1": "ggml-large-v1.bin",
    "large-v2": "ggml-large-v2.bin",
    "large-v3-turbo": "ggml-large-v3-turbo.bin",
    "turbo": "ggml-large-v3-turbo.bin",
}

ServiceOption = Union[str, bool]


@dataclass(frozen=True)
class JobConfig:
    """Resolved, read-only configuration for a single pipeline run."""

    transcript_service: str
    transcript_option: ServiceOption
    llm_service: Optional[str] = None
    llm_option: Optional[ServiceOption] = None
    speaker_labels: Any = None
    prompt: Any = None
    no_clean_up: Any = None
    order: Any = None
    skip: Any = None
    info: Any = None
    item: Any = None

    @property
    def llm_model(self) -> Optional[str]:
        """The requested model name, or ``None`` to use the backend default."""
        return self.llm_option if isinstance(self.llm_option, str) else None

    @property
    def transcript_model(self) -> Optional[str]:
        return self.transcript_option if isinstance(self.transcript_option, str) else None

    @property
    def options(self) -> Mapping[str, Any]:
        """The flat option mapping, keyed the way requests spell them."""
        options: Dict[str, Any] = {}
        if self.llm_service:
            options[self.llm_service] = self.llm_option
        if self.transcript_service in ("whisper", "whisperDocker"):
            options["whisperModel"] = self.transcript_option
        options[self.transcript_service] = self.transcript_option
        for key, field_name in _PASS_THROUGH_FIELDS.items():
            value = getattr(self, field_name)
            if value is not None:
                options[key] = value
        return MappingProxyType(options)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "options": self.options,
            "llmOpt": self.llm_service,
            "transcriptOpt": self.transcript_service,
        }


_PASS_THROUGH_FIELDS = {
    "speakerLabels": "speaker_labels",
    "prompt": "prompt",
    "noCleanUp": "no_clean_up",
    "order": "order",
    "skip": "skip",
    "info": "info",
    "item": "item",
}


def resolve(request: Mapping[str, Any]) -> JobConfig:
    """Map raw request data onto a :class:`JobConfig`.

    Args:
        request: Flat mapping of request keys.  ``llm`` and ``llmModel``
            select the language model, ``transcriptService`` and
            ``whisperModel`` the transcription service.  Flags listed in
            :data:`PASS_THROUGH_OPTIONS` are copied verbatim.

    Returns:
        The resolved configuration.  ``llm_service`` is ``None`` when the
        request names no known language model, which skips that stage.

    Raises:
        ConfigurationError: If ``request`` is not a mapping or names a
            whisper model that does not exist.
    """
    if request is None or not isinstance(request, Mapping):
        raise ConfigurationError("Request must be a mapping of options")

    llm_service = None
    llm_option = None
    if request.get("llm") in LLM_SERVICES:
        llm_service = request["llm"]
        llm_option = request.get("llmModel") or True

    transcript_service = request.get("transcriptService")
    if transcript_service not in TRANSCRIPT_SERVICES:
        transcript_service = DEFAULT_TRANSCRIPT_SERVICE

    if transcript_service in ("whisper", "whisperDocker"):
        transcript_option = request.get("whisperModel") or DEFAULT_WHISPER_MODEL
        if transcript_option not in WHISPER_MODELS:
            raise ConfigurationError(f"Unknown whisper model: {transcript_option}")
    else:
        transcript_option = True

    flags = {
        field_name: request[key]
        for key, field_name in _PASS_THROUGH_FIELDS.items()
        if request.get(key) is not None
    }
    return JobConfig(
        transcript_service=transcript_service,
        transcript_option=transcript_option,
        llm_service=llm_service,
        llm_option=llm_option,
        **flags,
    )
