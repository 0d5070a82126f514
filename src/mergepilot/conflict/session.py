"""Per-file resolution session: snapshot, pending regions, decisions."""

from __future__ import annotations

from pathlib import Path

from mergepilot.conflict.models import (
    ConflictRegion,
    Decision,
    ResolutionLogEntry,
    ResolutionMethod,
    ResolutionResult,
)
from mergepilot.conflict.parser import parse, read_lines
from mergepilot.core.log import logger


class ResolutionSession:
    """Tracks one resolution pass over one file.

    Pending regions are kept in file order and handed out from the
    bottom of the file up. Decisions are kept in the order they were
    made, so every decided region lies below every pending one.
    """

    def __init__(self, path: Path, context_lines: int = 10):
        self.path = Path(path)
        self.context_lines = context_lines
        self.lines, self.trailing_newline = read_lines(self.path)
        self.pending: list[ConflictRegion] = parse(
            self.lines, context_lines
        )
        self.decided: list[Decision] = []
        self.log: list[ResolutionLogEntry] = []
        self.aborted = False

    @property
    def text(self) -> str:
        return "\n".join(self.lines) + ("\n" if self.trailing_newline else "")

    @property
    def total(self) -> int:
        return len(self.pending) + len(self.decided)

    def has_pending(self) -> bool:
        return bool(self.pending) and not self.aborted

    def current(self) -> ConflictRegion:
        """The region to decide next (bottom-most pending one)."""
        return self.pending[-1]

    def record(self, result: ResolutionResult) -> Decision:
        """Decide the current region."""
        decision = Decision(region=self.pending.pop(), result=result)
        if result.abort:
            self.aborted = True
        return self._remember(decision)

    def changed_on_disk(self) -> bool:
        lines, trailing = read_lines(self.path)
        return lines != self.lines or trailing != self.trailing_newline

    def resync(self) -> None:
        """Re-read the file and re-bind regions to the new snapshot.

        Each decided region that still carries markers is matched to
        the bottom-most unclaimed fresh region holding the same
        competing text, so its line numbers address the new text.
        Decided regions with no match were resolved by hand and are
        dropped. Fresh regions no decision claims are pending. Editor
        resolutions carry no markers and keep their previous record.
        """
        self.lines, self.trailing_newline = read_lines(self.path)
        fresh = parse(self.lines, self.context_lines)

        unclaimed = list(fresh)
        kept = []
        rebound = []
        # decided holds the bottom-most region first
        for decision in self.decided:
            if decision.result.method is ResolutionMethod.MANUAL_EDIT:
                kept.append(decision)
                continue

            match = next(
                (
                    region for region in reversed(unclaimed)
                    if decision.region.same_conflict(region)
                ),
                None,
            )
            if match is None:
                logger.warning(
                    "Decided region no longer present after edit",
                    start_line=decision.region.start_line,
                )
                continue

            unclaimed.remove(match)
            rebound.append(Decision(region=match, result=decision.result))

        self.decided = kept + rebound
        self.pending = unclaimed
        logger.debug(
            "Re-synced file",
            file=str(self.path),
            pending=len(self.pending),
            decided=len(self.decided),
        )

    def accept_manual_edit(
        self,
        presented: ConflictRegion,
        result: ResolutionResult,
    ) -> Decision:
        """Record an editor resolution after the file was re-synced.

        The region the user fixed is gone from the fresh parse, so the
        record keeps the region as it was presented. If the bottom-most
        pending region still holds the presented conflict, the user
        left its markers in place; it is treated as resolved anyway.
        """
        if self.pending and self.pending[-1].same_conflict(presented):
            logger.warning(
                "Region still has markers after manual resolution",
                start_line=self.pending[-1].start_line,
            )
            self.pending.pop()

        return self._remember(Decision(region=presented, result=result))

    def _remember(self, decision: Decision) -> Decision:
        self.decided.append(decision)
        self.log.append(ResolutionLogEntry.record(decision))
        logger.info(
            "Region decided",
            start_line=decision.region.start_line,
            end_line=decision.region.end_line,
            outcome=decision.result.outcome.value,
            method=decision.result.method.value,
        )
        return decision


__all__ = ["ResolutionSession"]
