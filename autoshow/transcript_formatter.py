"""
Transcript formatting utilities.

Every transcription service returns its own structure: AssemblyAI sends
utterances and word lists with millisecond offsets, Deepgram sends word
records nested within channels and alternatives, and whisper.cpp writes an
LRC file.  The functions in this module flatten those structures and rebuild
them into one plain-text form, a line per utterance or chunk with an
``mm:ss`` timestamp and optionally a speaker label.

Later pipeline stages only ever see the output of :func:`normalize`.
"""

import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence

from .errors import FormattingError

LINE_LIMIT = 80
NO_TRANSCRIPT = "No transcription available."

_LRC_TIMESTAMP = re.compile(r"\[(\d{2,3}):(\d{2})\.(\d{2,3})\]")


def format_timestamp(seconds: float) -> str:
    """Render an offset in seconds as ``mm:ss``.

    Fractions are floored away.  Minutes are not wrapped into hours, so an
    offset of two hours renders as ``120:00``.
    """
    total = int(seconds // 1)
    return f"{total // 60:02d}:{total % 60:02d}"


def _format_ms(milliseconds: float) -> str:
    return format_timestamp(milliseconds // 1000)


def format_assembly_transcript(transcript: Any, speaker_labels: bool = False) -> str:
    """Convert an AssemblyAI transcript into labelled, timestamped lines.

    Utterances are preferred.  Without them the word list is packed greedily
    into lines of at most :data:`LINE_LIMIT` characters, each prefixed with
    the timestamp of its first word.  Failing both, the plain ``text`` field
    is returned.

    Args:
        transcript: The completed transcript JSON returned by AssemblyAI.
        speaker_labels: Prefix utterance lines with ``Speaker <id>``.

    Returns:
        The formatted transcript.

    Raises:
        FormattingError: If ``transcript`` is not a mapping or one of its
            utterance or word records lacks ``start`` or ``text``.
    """
    if not isinstance(transcript, Mapping):
        raise FormattingError("assembly", "Transcript response is not an object")

    utterances = transcript.get("utterances") or []
    words = transcript.get("words") or []
    try:
        if utterances:
            lines = []
            for utt in utterances:
                prefix = f"Speaker {utt['speaker']} " if speaker_labels else ""
                lines.append(f"{prefix}({_format_ms(utt['start'])}): {utt['text']}")
            return "\n".join(lines)
        if words:
            return "\n".join(_pack_words(words))
    except KeyError as exc:
        raise FormattingError("assembly", f"Record is missing field {exc}") from exc
    return transcript.get("text") or NO_TRANSCRIPT


def _pack_words(words: Iterable[Mapping[str, Any]]) -> List[str]:
    lines: List[str] = []
    current = ""
    timestamp = ""
    for word in words:
        text = word["text"]
        # current keeps a trailing space, so this bounds the joined words
        if current and len(current) + len(text) > LINE_LIMIT:
            lines.append(f"[{timestamp}] {current.strip()}")
            current = ""
        if not current:
            timestamp = _format_ms(word["start"])
        current += f"{text} "
    if current:
        lines.append(f"[{timestamp}] {current.strip()}")
    return lines


def flatten_word_info(data: Any) -> List[Dict]:
    """Extract the word list from a Deepgram response.

    Accepts either the full ``/v1/listen`` JSON or an already flattened
    sequence of word records.

    Raises:
        FormattingError: If no word list can be found.
    """
    if isinstance(data, Sequence) and not isinstance(data, (str, bytes)):
        return list(data)
    if isinstance(data, Mapping):
        try:
            words = data["results"]["channels"][0]["alternatives"][0]["words"]
        except (KeyError, IndexError, TypeError):
            words = None
        if words is not None:
            return list(words)
    raise FormattingError("deepgram", "No transcription results found in Deepgram response")


def format_deepgram_transcript(data: Any, speaker_labels: bool = False) -> str:
    """Convert Deepgram word records into plain text.

    Without speaker labels the words are simply joined with spaces.  With
    them, consecutive words from the same speaker form a block such as
    ``Speaker 0: hello there`` and blocks are separated by a blank line.
    Words without a ``speaker`` field share the ``None`` speaker and are
    grouped like any other speaker.
    """
    words = flatten_word_info(data)
    try:
        if not speaker_labels:
            return " ".join(w["word"] for w in words)

        blocks: List[str] = []
        current: List[str] = []
        current_speaker = None
        for w in words:
            speaker = w.get("speaker")
            if current and speaker != current_speaker:
                blocks.append(f"Speaker {current_speaker}: {' '.join(current)}")
                current = []
            current_speaker = speaker
            current.append(w["word"])
    except (KeyError, TypeError, AttributeError) as exc:
        raise FormattingError("deepgram", f"Malformed word record: {exc!r}") from exc
    if current:
        blocks.append(f"Speaker {current_speaker}: {' '.join(current)}")
    return "\n\n".join(blocks)


def lrc_to_txt(lrc_content: Any, speaker_labels: bool = False) -> str:
    """Convert whisper.cpp LRC output to ``[mm:ss] text`` lines."""
    if not isinstance(lrc_content, str):
        raise FormattingError("whisper", "Expected LRC text from whisper.cpp")
    lines = (
        _LRC_TIMESTAMP.sub(lambda m: f"[{m.group(1)}:{m.group(2)}]", line)
        for line in lrc_content.split("\n")
        if not line.startswith("[by:whisper.cpp]")
    )
    return "\n".join(lines)


FORMATTERS: Dict[str, Callable[[Any, bool], str]] = {
    "whisper": lrc_to_txt,
    "whisperDocker": lrc_to_txt,
    "deepgram": format_deepgram_transcript,
    "assembly": format_assembly_transcript,
}


def normalize(service: str, raw: Any, speaker_labels: bool = False) -> str:
    """Format a raw transcription result with the formatter for ``service``."""
    try:
        formatter = FORMATTERS[service]
    except KeyError:
        raise FormattingError(service, "No formatter registered") from None
    return formatter(raw, bool(speaker_labels))
