"""
Exception types raised by the show-note pipeline.

Configuration and dependency problems are detected before any work starts.
Backend and formatting failures abort the job that raised them and carry the
name of the backend involved so callers can report where things went wrong.
"""

from typing import Optional


class AutoshowError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(AutoshowError):
    """The request cannot be turned into a usable job configuration."""


class DependencyMissingError(AutoshowError):
    """A required command-line tool is not installed or not on ``PATH``."""

    def __init__(self, command: str):
        self.command = command
        super().__init__(
            f"Dependency '{command}' is not installed or not found in PATH. "
            "Please install it to proceed."
        )


class BackendError(AutoshowError):
    """A transcription or language model adapter failed."""

    def __init__(self, backend: str, detail: str):
        self.backend = backend
        self.detail = detail
        super().__init__(f"{backend}: {detail}")


class FormattingError(AutoshowError):
    """A raw transcription result is missing the structure its formatter needs."""

    def __init__(self, backend: str, detail: str):
        self.backend = backend
        self.detail = detail
        super().__init__(f"{backend}: {detail}")


class FileSystemError(AutoshowError):
    """A temporary file could not be removed.

    Only ever logged; cleanup never raises it.
    """

    def __init__(self, path: str, detail: Optional[str] = None):
        self.path = path
        self.detail = detail
        message = f"Error deleting file {path}"
        if detail:
            message += f": {detail}"
        super().__init__(message)
