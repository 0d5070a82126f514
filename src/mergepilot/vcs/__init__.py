"""Version control integration."""

from mergepilot.vcs.integration import (
    MarkResult,
    Repository,
    VCSIntegration,
    VcsKind,
    VcsStatus,
    detect_vcs,
)

__all__ = [
    "VCSIntegration",
    "VcsKind",
    "VcsStatus",
    "MarkResult",
    "Repository",
    "detect_vcs",
]
