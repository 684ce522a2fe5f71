"""
Temporary artifact lifecycle.

A job leaves intermediate files next to its id: the converted audio
(``.wav``), whisper.cpp output (``.lrc``), the formatted transcript
(``.txt``) and the front matter (``.md``).  :func:`cleanup` removes them once
the finished document has been written.  Removal is best effort: a missing
file counts as removed and any other failure is logged, never raised.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from .errors import FileSystemError

logger = logging.getLogger(__name__)

TEMP_EXTENSIONS = (".wav", ".txt", ".md", ".lrc")

DELETED = "deleted"
MISSING = "missing"
FAILED = "failed"


@dataclass(frozen=True)
class CleanupOutcome:
    path: str
    status: str
    error: Optional[FileSystemError] = None


def artifact_path(job_id: str, ext: str) -> str:
    return f"{job_id}{ext}"


def temp_paths(job_id: str) -> List[str]:
    return [artifact_path(job_id, ext) for ext in TEMP_EXTENSIONS]


def cleanup(job_id: str) -> List[CleanupOutcome]:
    """Remove the temporary files belonging to ``job_id``.

    Args:
        job_id: Base path (without extension) shared by the job's files.

    Returns:
        One outcome per extension, in :data:`TEMP_EXTENSIONS` order.
    """
    outcomes = []
    for path in temp_paths(job_id):
        try:
            os.remove(path)
        except FileNotFoundError:
            outcomes.append(CleanupOutcome(path, MISSING))
            continue
        except OSError as exc:
            error = FileSystemError(path, exc.strerror or str(exc))
            logger.warning("%s", error)
            outcomes.append(CleanupOutcome(path, FAILED, error))
            continue
        logger.info("Temporary file deleted: %s", path)
        outcomes.append(CleanupOutcome(path, DELETED))
    return outcomes
