"""
Audio conversion utilities.

whisper.cpp and the hosted transcription services all receive the same
input: a 16 kHz mono WAV file named ``<job_id>.wav``.  Conversion goes
through `pydub`, which in turn relies on `ffmpeg`.
"""

import logging
from pathlib import Path

from pydub import AudioSegment

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".mp3", ".m4a", ".flac", ".wav", ".mp4", ".ogg", ".webm", ".mkv", ".aac"}


def is_supported_audio(path: str) -> bool:
    """Check whether the file at ``path`` has a supported media extension."""
    return Path(path).suffix.lower() in SUPPORTED_EXTENSIONS


def convert_to_wav(input_path: str, job_id: str, *, target_sample_rate: int = 16_000) -> str:
    """Convert a media file to ``<job_id>.wav`` at 16 kHz mono.

    Args:
        input_path: Path to the source audio or video file.
        job_id: Base path of the job's temporary files.
        target_sample_rate: Desired sample rate for the output WAV.

    Returns:
        The path of the written WAV file.

    Raises:
        ValueError: If the file extension is unsupported.
    """
    if not is_supported_audio(input_path):
        raise ValueError(f"Unsupported audio type: {Path(input_path).suffix.lower()}")
    output_path = f"{job_id}.wav"
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    audio = AudioSegment.from_file(input_path)
    audio = audio.set_channels(1).set_frame_rate(target_sample_rate)
    audio.export(output_path, format="wav")
    logger.info("Converted %s to %s", input_path, output_path)
    return output_path
