"""Exception hierarchy for mergepilot."""

from __future__ import annotations

from pathlib import Path


class MergePilotError(Exception):
    """Base class for all mergepilot errors."""


class ConflictFileError(MergePilotError, FileNotFoundError):
    """Target file is missing or is not a regular file."""

    def __init__(self, path: Path, message: str | None = None):
        self.path = Path(path)
        super().__init__(message or f"File not found: {self.path}")


class MalformedConflictError(MergePilotError, ValueError):
    """Conflict markers are incomplete (file ends inside a region)."""

    def __init__(self, line: int, missing: str):
        self.line = line
        self.missing = missing
        super().__init__(
            f"Malformed conflict at line {line}: no {missing} marker found"
        )


class TemplateNotFoundError(MergePilotError, FileNotFoundError):
    """Prompt template could not be located."""

    def __init__(self, name: str, path: Path):
        self.name = name
        self.path = path
        super().__init__(f"Template '{name}' not found at {path}")


class LLMError(MergePilotError):
    """Communication with the LLM provider failed."""


class InvalidResponseError(MergePilotError):
    """LLM reply could not be parsed, even after one repair attempt.

    Attributes:
        raw: The original reply text
        error: The last parse/validation error
    """

    def __init__(self, raw: str, error: Exception | str):
        self.raw = raw
        self.error = error
        super().__init__(f"Invalid LLM response: {error}")


class FileWriteError(MergePilotError, OSError):
    """Resolved content could not be written to the target file."""

    def __init__(self, path: Path, cause: OSError):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"Failed to write {self.path}: {cause}")


__all__ = [
    "MergePilotError",
    "ConflictFileError",
    "MalformedConflictError",
    "TemplateNotFoundError",
    "LLMError",
    "InvalidResponseError",
    "FileWriteError",
]
