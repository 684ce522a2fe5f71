"""
Orchestration layer for the show-note pipeline.

This module coordinates the steps of a job:

* Write the front matter to ``<job_id>.md``.
* Transcribe ``<job_id>.wav`` with the selected transcription service.
* Format the raw result into a plain transcript and save ``<job_id>.txt``.
* Assemble front matter, prompt and transcript, and send the result to the
  selected language model, if any.
* Write the finished document and remove the temporary files.

Steps run strictly one after another.  When a step fails the exception
propagates and the temporary files stay on disk for inspection; cleanup
only follows a successful write.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional, Union

from . import audio_processor, cleanup, options, prompt, storage, transcript_formatter
from .config import Settings
from .dispatch import Dispatcher
from .errors import ConfigurationError
from .stt_service import TranscriptionRequest
from .summarizer import GenerationRequest

logger = logging.getLogger(__name__)


def default_destination(job_id: str, config: options.JobConfig) -> str:
    if config.llm_service:
        return f"{job_id}-{config.llm_service}-shownotes.md"
    return f"{job_id}-shownotes.md"


def make_job_id(output_dir: str, name: str, key: str) -> str:
    """Build ``<output_dir>/<sanitized name>-<hash of key>``.

    ``key`` identifies the input (a resolved file path or an item link), so
    inputs that sanitize to the same name still get separate temp files.
    """
    digest = hashlib.sha1(key.encode("utf-8")).hexdigest()[:8]
    return str(Path(output_dir) / f"{prompt.sanitize_title(name)}-{digest}")


def run_pipeline(
    job_id: str,
    config: options.JobConfig,
    front_matter: Union[prompt.FrontMatter, str],
    *,
    transcription: Dispatcher,
    llm: Dispatcher,
    destination: Optional[str] = None,
) -> str:
    """Run one job whose audio is already at ``<job_id>.wav``.

    Args:
        job_id: Base path shared by all of the job's temporary files.
        config: The resolved job configuration.
        front_matter: Episode metadata, or an already rendered block.
        transcription: Dispatcher holding the transcription adapters.
        llm: Dispatcher holding the language model adapters.
        destination: Where to write the document.  Defaults to a file next
            to the temporary files.

    Returns:
        The location of the written document.
    """
    if isinstance(front_matter, prompt.FrontMatter):
        front_matter = front_matter.render()
    storage.write_text(cleanup.artifact_path(job_id, ".md"), front_matter + "\n")

    logger.info("Transcribing %s with %s", job_id, config.transcript_service)
    raw = transcription.dispatch(
        config.transcript_service,
        TranscriptionRequest(
            job_id=job_id,
            speaker_labels=bool(config.speaker_labels),
            model=config.transcript_model,
        ),
    )
    transcript = transcript_formatter.normalize(config.transcript_service, raw, bool(config.speaker_labels))
    storage.write_text(cleanup.artifact_path(job_id, ".txt"), transcript)

    show_notes = None
    if config.llm_service:
        bundle = prompt.assemble(front_matter, prompt.generate_prompt(config.prompt), transcript)
        show_notes = llm.dispatch(config.llm_service, GenerationRequest(bundle, config.llm_model))
    else:
        logger.info("No LLM selected, skipping show note generation")

    document = prompt.build_document(front_matter, transcript, show_notes)
    written = storage.write_document(document, destination or default_destination(job_id, config))

    if config.no_clean_up:
        logger.info("Keeping temporary files for %s", job_id)
    else:
        cleanup.cleanup(job_id)
    return written


def process_file(
    file_path: str,
    request: Mapping[str, Any],
    *,
    settings: Settings,
    transcription: Dispatcher,
    llm: Dispatcher,
    destination: Optional[str] = None,
) -> str:
    """Generate show notes for a local audio or video file."""
    config = options.resolve(request)
    if not audio_processor.is_supported_audio(file_path):
        raise ConfigurationError(f"Unsupported audio type: {Path(file_path).suffix.lower()}")
    if not Path(file_path).is_file():
        raise ConfigurationError(f"File not found: {file_path}")
    job_id = make_job_id(settings.output_dir, Path(file_path).stem, str(Path(file_path).resolve()))
    logger.info("Processing file %s as %s", file_path, job_id)
    audio_processor.convert_to_wav(file_path, job_id)
    return run_pipeline(
        job_id,
        config,
        prompt.FrontMatter.from_file(file_path),
        transcription=transcription,
        llm=llm,
        destination=destination,
    )


def select_items(items: Iterable[Mapping[str, Any]], config: options.JobConfig) -> List[Mapping[str, Any]]:
    """Pick feed or playlist items according to ``item``, ``order`` and ``skip``.

    Items are expected newest first.  When ``item`` names specific links only
    those are kept; otherwise ``order="oldest"`` reverses the list and
    ``skip`` drops that many items from the front.
    """
    items = list(items)
    if config.item:
        wanted = {config.item} if isinstance(config.item, str) else set(config.item)
        return [i for i in items if i.get("showLink") in wanted]
    if config.order == "oldest":
        items.reverse()
    skip = int(config.skip or 0)
    return items[skip:]


def process_items(
    items: Iterable[Mapping[str, Any]],
    request: Mapping[str, Any],
    *,
    settings: Settings,
    acquire: Callable[[Mapping[str, Any], str], Any],
    transcription: Dispatcher,
    llm: Dispatcher,
) -> List[str]:
    """Run the pipeline for each selected feed or playlist item.

    ``acquire(item, job_id)`` must leave the item's audio at
    ``<job_id>.wav``.  With ``info`` set, the selected items' metadata is
    written to ``<output_dir>/items_info.json`` and nothing is transcribed.

    Returns:
        The locations of the written documents.
    """
    config = options.resolve(request)
    selected = select_items(items, config)
    logger.info("Selected %d item(s)", len(selected))

    if config.info:
        path = str(Path(settings.output_dir) / "items_info.json")
        storage.write_document(json.dumps([dict(i) for i in selected], indent=2), path)
        return [path]

    written = []
    for item in selected:
        front_matter = prompt.FrontMatter.from_metadata(item)
        name = front_matter.title or "untitled"
        if front_matter.publish_date:
            name = f"{front_matter.publish_date}-{name}"
        key = front_matter.show_link or json.dumps(dict(item), sort_keys=True, default=str)
        job_id = make_job_id(settings.output_dir, name, key)
        acquire(item, job_id)
        written.append(
            run_pipeline(job_id, config, front_matter, transcription=transcription, llm=llm)
        )
    return written
