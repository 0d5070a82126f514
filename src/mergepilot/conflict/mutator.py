"""Apply decided resolutions to a file's line buffer."""

from __future__ import annotations

import contextlib
import os
import shutil
import tempfile
from pathlib import Path

from pydantic import BaseModel

from mergepilot.conflict.models import Decision, ResolutionSummary
from mergepilot.conflict.parser import split_lines
from mergepilot.core.errors import FileWriteError
from mergepilot.core.log import logger


class MutationOutcome(BaseModel):
    """New buffer plus the summary of the decisions applied to it."""

    lines: list[str]
    summary: ResolutionSummary
    trailing_newline: bool = True

    @property
    def aborted(self) -> bool:
        return self.summary.aborted

    def render(self) -> str:
        text = "\n".join(self.lines)
        if self.lines and self.trailing_newline:
            text += "\n"
        return text


class FileMutator:
    """Applies accepted resolutions bottom-up and writes once."""

    def apply(
        self,
        original_lines: list[str],
        decisions: list[Decision],
        trailing_newline: bool = True,
    ) -> MutationOutcome:
        """Replace accepted regions in a copy of original_lines.

        Decisions are applied from the bottom of the file up, so every
        region's line numbers still address its original text when it
        is replaced. Skipped regions keep their markers. Any abort
        leaves the buffer untouched.

        Args:
            original_lines: Snapshot the decisions' regions were bound to
            decisions: One decision per region, in any order
            trailing_newline: Whether the file ended with a newline

        Returns:
            MutationOutcome with the new lines and a summary
        """
        summary = ResolutionSummary()
        lines = list(original_lines)

        if any(d.result.abort for d in decisions):
            summary.aborted = True
            return MutationOutcome(
                lines=lines,
                summary=summary,
                trailing_newline=trailing_newline,
            )

        ordered = sorted(
            decisions, key=lambda d: d.region.start_line, reverse=True
        )
        for decision in ordered:
            region, result = decision.region, decision.result
            if not result.accepted:
                summary.skipped += 1
                continue

            summary.accepted += 1
            if not result.replaces_text:
                # Resolved in the editor; the snapshot already has it
                continue

            lines[region.start_line - 1:region.end_line] = _replacement(
                result.merged_code, lines[region.start_line - 1]
            )
            logger.debug(
                "Applied resolution",
                start_line=region.start_line,
                end_line=region.end_line,
                method=result.method.value,
            )

        return MutationOutcome(
            lines=lines,
            summary=summary,
            trailing_newline=trailing_newline,
        )

    def commit(self, path: Path, outcome: MutationOutcome) -> bool:
        """Write the outcome to path, atomically and at most once.

        Nothing is written when the outcome was aborted or no region
        was accepted.

        Returns:
            True if the file was written

        Raises:
            FileWriteError: If the file could not be written; the
                original file is left untouched
        """
        path = Path(path)
        if outcome.aborted or outcome.summary.accepted == 0:
            logger.info(
                "Leaving file unchanged",
                file=str(path),
                aborted=outcome.aborted,
            )
            return False

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(outcome.render())
            shutil.copymode(path, tmp_name)
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            logger.error("Failed to write file", file=str(path), error=str(e))
            raise FileWriteError(path, e) from e

        logger.info(
            "Wrote resolved file",
            file=str(path),
            accepted=outcome.summary.accepted,
            skipped=outcome.summary.skipped,
        )
        return True


def _replacement(merged_code: str, open_marker: str) -> list[str]:
    """Lines replacing a region, in the line ending the region used."""
    lines, _ = split_lines(merged_code)
    if not open_marker.endswith("\r"):
        return lines
    return [line if line.endswith("\r") else line + "\r" for line in lines]


__all__ = ["FileMutator", "MutationOutcome"]
