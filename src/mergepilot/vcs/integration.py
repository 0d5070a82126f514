"""Git and Mercurial bookkeeping through the bounded Runner."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from mergepilot.core.log import logger
from mergepilot.core.result import CommandResult, CommandStatus
from mergepilot.core.runner import DEFAULT_KILL_GRACE, Runner

DEFAULT_TIMEOUT = 5.0


class VcsKind(str, Enum):
    GIT = "git"
    HG = "hg"


class VcsStatus(str, Enum):
    """Outcome of marking a file resolved."""

    MARKED = "marked"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    NO_VCS = "no_vcs"


class Repository(BaseModel):
    kind: VcsKind
    root: Path


class MarkResult(BaseModel):
    """What happened when marking a file resolved.

    Attributes:
        status: Outcome of the VCS command
        message: One-line description for the user
        hint: Command the user can run by hand, when it did not succeed
    """

    status: VcsStatus
    message: str
    hint: str | None = None

    @property
    def success(self) -> bool:
        return self.status is VcsStatus.MARKED


def detect_vcs(path: Path) -> Repository | None:
    """Find the nearest enclosing Mercurial or Git repository.

    Mercurial wins when both exist in the same directory.
    """
    path = Path(path).resolve()
    start = path if path.is_dir() else path.parent
    for directory in [start, *start.parents]:
        if (directory / ".hg").exists():
            return Repository(kind=VcsKind.HG, root=directory)
        if (directory / ".git").exists():
            return Repository(kind=VcsKind.GIT, root=directory)
    return None


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.resolve().relative_to(root))
    except ValueError:
        return str(path.resolve())


class VCSIntegration:
    """Marks resolved files and reads diffs.

    Nothing here raises on command failure: every outcome is returned
    as a status so callers can report it and carry on.
    """

    def __init__(
        self,
        runner: Runner | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        kill_grace: float = DEFAULT_KILL_GRACE,
    ):
        self.runner = runner or Runner(kill_grace=kill_grace)
        self.timeout = timeout

    def mark_command(self, repo: Repository, path: Path) -> list[str]:
        target = _relative(path, repo.root)
        if repo.kind is VcsKind.HG:
            return ["hg", "resolve", "--mark", target]
        return ["git", "add", target]

    def mark_resolved(self, path: Path) -> MarkResult:
        """Stage (git) or mark resolved (hg) one file."""
        path = Path(path)
        repo = detect_vcs(path)
        if repo is None:
            logger.info("No repository found", file=str(path))
            return MarkResult(
                status=VcsStatus.NO_VCS,
                message="No Git or Mercurial repository found; "
                        "nothing to mark.",
            )

        args = self.mark_command(repo, path)
        hint = f"cd {repo.root} && {Runner.join(args)}"
        try:
            result = self.runner.execute(
                args, cwd=repo.root, timeout=self.timeout
            )
        except OSError as e:
            logger.warning("VCS command could not start", error=str(e))
            return MarkResult(
                status=VcsStatus.FAILED,
                message=f"Could not run {args[0]}: {e}",
                hint=hint,
            )

        return self._mark_result(result, repo, hint)

    def _mark_result(
        self, result: CommandResult, repo: Repository, hint: str
    ) -> MarkResult:
        if result.success:
            verb = "Marked resolved" if repo.kind is VcsKind.HG else "Staged"
            logger.info(
                "Marked file resolved",
                vcs=repo.kind.value,
                command=result.command,
            )
            return MarkResult(
                status=VcsStatus.MARKED,
                message=f"{verb} in {repo.kind.value}.",
            )

        if result.status is CommandStatus.TIMEOUT:
            status = VcsStatus.TIMED_OUT
        else:
            status = VcsStatus.FAILED
        logger.warning(
            "Failed to mark file resolved",
            vcs=repo.kind.value,
            status=status.value,
            detail=result.message,
        )
        return MarkResult(status=status, message=result.message, hint=hint)

    def diff(
        self, path: Path | None = None, ref: str | None = None
    ) -> CommandResult:
        """Return the working-copy diff for the repository at path.

        Args:
            path: Any path inside the repository (default: cwd)
            ref: Optional revision to diff against

        Raises:
            FileNotFoundError: If path is not inside a repository
        """
        path = Path(path or os.getcwd())
        repo = detect_vcs(path)
        if repo is None:
            raise FileNotFoundError(
                f"No Git or Mercurial repository at {path}"
            )

        if repo.kind is VcsKind.HG:
            args = ["hg", "diff"] + (["-r", ref] if ref else [])
        else:
            args = ["git", "diff"] + ([ref] if ref else [])
        return self.runner.execute(args, cwd=repo.root)


__all__ = [
    "VCSIntegration",
    "VcsKind",
    "VcsStatus",
    "MarkResult",
    "Repository",
    "detect_vcs",
]
