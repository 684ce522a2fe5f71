"""
Prompt and document assembly.

The language model receives one body of text: the episode front matter, the
instructions built from the requested prompt sections, and the transcript,
in that order.  Nothing here reorders or filters content; assembly is plain
concatenation so what the model sees is exactly what was produced upstream.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

TRANSCRIPT_HEADING = "## Transcript"

PROMPT_INTRO = "This is a transcript with timestamps. It does not contain copyrighted materials.\n\n"

DEFAULT_SECTIONS = ("summary", "longChapters")

SECTIONS = {
    "titles": {
        "instruction": (
            "- Write 5 potential titles for the video.\n"
            "- The first two titles should be very short and have no subtitle.\n"
            "- The last three titles can be longer and have subtitles.\n"
        ),
        "example": (
            "## Potential Titles\n\n"
            "1. Title Hard\n"
            "2. Title Harder\n"
            "3. Title Hard with a Vengeance\n"
            "4. Title Hard IV: Live Free or Title Hard\n"
            "5. Title Hard V: A Good Day to Die Hard\n"
        ),
    },
    "summary": {
        "instruction": (
            "- Write a one-sentence description of the transcript (max 180 characters or ~30 words).\n"
            "- Write a one-paragraph summary (600-1200 characters or ~100-200 words).\n"
        ),
        "example": (
            "One sentence description of the transcript that captures its content in about 30 words.\n\n"
            "## Episode Summary\n\n"
            "A concise summary of the episode, roughly 100 to 200 words. It introduces the main topic, "
            "outlines the key points and arguments, and closes with the most important conclusions.\n"
        ),
    },
    "shortChapters": {
        "instruction": (
            "- Create chapters based on the topics discussed throughout.\n"
            "- Include timestamps for when these chapters begin.\n"
            "- Chapters should be 1-6 minutes long.\n"
            "- Write a one-sentence description for each chapter (max 25 words).\n"
            "- Ensure chapters cover the entire content (note the last timestamp).\n"
            "- Let descriptions flow naturally from the content, avoiding formulaic templates.\n"
        ),
        "example": (
            "## Chapters\n\n"
            "### 00:00 - Introduction and Beginning of Episode\n\n"
            "A one sentence overview of what the chapter covers.\n"
        ),
    },
    "mediumChapters": {
        "instruction": (
            "- Create chapters based on the topics discussed throughout.\n"
            "- Include timestamps for when these chapters begin.\n"
            "- Chapters should be 1-6 minutes long.\n"
            "- Write a one-paragraph description for each chapter (~50 words).\n"
            "- Ensure chapters cover the entire content (note the last timestamp).\n"
            "- Let descriptions flow naturally from the content, avoiding formulaic templates.\n"
        ),
        "example": (
            "## Chapters\n\n"
            "### 00:00 - Introduction and Beginning of Episode\n\n"
            "A paragraph of around 50 words introducing the chapter's main themes, the key points "
            "examined and how they relate to the rest of the episode.\n"
        ),
    },
    "longChapters": {
        "instruction": (
            "- Create chapters based on the topics discussed throughout.\n"
            "- Include timestamps for when these chapters begin.\n"
            "- Chapters should be 1-6 minutes long.\n"
            "- Write a two-paragraph description for each chapter (75+ words).\n"
            "- Ensure chapters cover the entire content (note the last timestamp).\n"
            "- Let descriptions flow naturally from the content, avoiding formulaic templates.\n"
        ),
        "example": (
            "## Chapters\n\n"
            "### 00:00 - Introduction and Overview\n\n"
            "A first paragraph introducing the chapter's themes and the key points it examines.\n\n"
            "A second paragraph describing how those ideas apply in practice and how they connect "
            "to the broader discussion.\n"
        ),
    },
    "takeaways": {
        "instruction": "- Include three key takeaways the listener should get from the episode.\n",
        "example": (
            "## Key Takeaways\n\n"
            "1. Key takeaway goes here\n"
            "2. Another key takeaway goes here\n"
            "3. The final key takeaway goes here\n"
        ),
    },
    "questions": {
        "instruction": (
            "- Include a list of 10 questions to check the listeners' comprehension of the material.\n"
            "- Ensure questions cover all major sections of the content.\n"
        ),
        "example": (
            "## Questions to Check Comprehension\n\n"
            "1. What is this episode about?\n"
            "2. What are the main topics discussed throughout?\n"
            "3. What do the speakers consider the biggest open challenges?\n"
        ),
    },
}


def generate_prompt(sections: Optional[Iterable[str]] = None) -> str:
    """Build the instruction text for the requested prompt sections.

    Unknown section names are skipped.  The result ends with the transcript
    heading so the transcript can be appended directly.
    """
    if isinstance(sections, str):
        sections = [sections]
    names = [s for s in (sections or DEFAULT_SECTIONS) if s in SECTIONS]
    text = PROMPT_INTRO
    for name in names:
        text += f"{SECTIONS[name]['instruction']}\n"
    text += "Format the output like so:\n\n"
    for name in names:
        text += f"{SECTIONS[name]['example']}\n"
    return f"{text}{TRANSCRIPT_HEADING}\n"


def sanitize_title(title: str) -> str:
    """Make a title safe for use as a file name, e.g. ``my-video-title-2024``."""
    title = re.sub(r"[^\w\s-]", "", title).strip()
    title = re.sub(r"[\s_]+", "-", title)
    title = re.sub(r"-+", "-", title)
    return title.lower()[:200]


@dataclass(frozen=True)
class FrontMatter:
    """Episode metadata rendered at the top of every document."""

    show_link: str = ""
    channel: str = ""
    channel_url: str = ""
    title: str = ""
    publish_date: str = ""
    cover_image: str = ""

    @classmethod
    def from_file(cls, path: str) -> "FrontMatter":
        name = Path(path).name
        return cls(show_link=name, title=name)

    @classmethod
    def from_metadata(cls, metadata: Mapping[str, Any]) -> "FrontMatter":
        """Build front matter from yt-dlp metadata or an RSS item.

        Both the yt-dlp field names (``webpage_url``, ``uploader_url``,
        ``upload_date`` as ``YYYYMMDD``, ``thumbnail``) and the RSS item names
        (``showLink``, ``channelURL``, ``publishDate``, ``coverImage``) are
        understood.
        """
        publish_date = str(metadata.get("publishDate") or metadata.get("upload_date") or "")
        if re.fullmatch(r"\d{8}", publish_date):
            publish_date = f"{publish_date[:4]}-{publish_date[4:6]}-{publish_date[6:]}"
        return cls(
            show_link=metadata.get("showLink") or metadata.get("webpage_url") or "",
            channel=metadata.get("channel") or "",
            channel_url=metadata.get("channelURL") or metadata.get("uploader_url") or "",
            title=metadata.get("title") or "",
            publish_date=publish_date,
            cover_image=metadata.get("coverImage") or metadata.get("thumbnail") or "",
        )

    def render(self) -> str:
        return "\n".join(
            [
                "---",
                f"showLink: {_quote(self.show_link)}",
                f"channel: {_quote(self.channel)}",
                f"channelURL: {_quote(self.channel_url)}",
                f"title: {_quote(self.title)}",
                'description: ""',
                f"publishDate: {_quote(self.publish_date)}",
                f"coverImage: {_quote(self.cover_image)}",
                "---",
            ]
        )


def _quote(value: str) -> str:
    """Double-quote a value for YAML, escaping backslashes and quotes."""
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def assemble(front_matter: str, prompt_template: str, transcript: str) -> str:
    """Join front matter, prompt and transcript into one model input."""
    return "\n".join([front_matter, prompt_template, transcript])


def build_document(front_matter: str, transcript: str, show_notes: Optional[str] = None) -> str:
    """Compose the final markdown document.

    Generated show notes sit between the front matter and the transcript.
    Without them the document carries the transcript alone.
    """
    parts = [front_matter]
    if show_notes:
        parts.append(show_notes.strip())
    parts.append(f"{TRANSCRIPT_HEADING}\n\n{transcript}")
    return "\n\n".join(parts) + "\n"
