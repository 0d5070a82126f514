"""Conflict parsing, resolution and file mutation."""

from mergepilot.conflict.models import (
    MANUAL_RESOLUTION,
    ConflictRegion,
    Decision,
    Outcome,
    ResolutionLogEntry,
    ResolutionMethod,
    ResolutionResult,
    ResolutionSummary,
    Suggestion,
)
from mergepilot.conflict.mutator import FileMutator, MutationOutcome
from mergepilot.conflict.parser import parse, parse_file
from mergepilot.conflict.session import ResolutionSession

__all__ = [
    "MANUAL_RESOLUTION",
    "ConflictRegion",
    "Decision",
    "Outcome",
    "ResolutionLogEntry",
    "ResolutionMethod",
    "ResolutionResult",
    "ResolutionSummary",
    "Suggestion",
    "FileMutator",
    "MutationOutcome",
    "ResolutionSession",
    "parse",
    "parse_file",
]
