"""Parse conflict markers into ConflictRegion records."""

from __future__ import annotations

from pathlib import Path

from mergepilot.conflict.models import ConflictRegion
from mergepilot.core.errors import ConflictFileError, MalformedConflictError
from mergepilot.core.log import logger

OPEN_MARKER = "<<<<<<<"
SEPARATOR = "======="
CLOSE_MARKER = ">>>>>>>"

DEFAULT_CONTEXT_LINES = 10


def parse(
    lines: list[str],
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> list[ConflictRegion]:
    """Scan lines for conflict regions.

    Args:
        lines: File content split on "\n"; a "\r" ending stays in
            its line
        context_lines: Number of lines of context before/after each
            region; windows are clamped to the file

    Returns:
        Regions in ascending start_line order (empty if the file has
        no markers)

    Raises:
        MalformedConflictError: If the file ends inside a region
    """
    regions = []
    i = 0

    while i < len(lines):
        if not lines[i].startswith(OPEN_MARKER):
            i += 1
            continue

        start = i
        base_label = lines[i][len(OPEN_MARKER):].strip()

        separator = _find(lines, SEPARATOR, start + 1)
        if separator is None:
            raise MalformedConflictError(start + 1, SEPARATOR)

        end = _find(lines, CLOSE_MARKER, separator + 1)
        if end is None:
            raise MalformedConflictError(start + 1, CLOSE_MARKER)

        regions.append(ConflictRegion(
            start_line=start + 1,
            end_line=end + 1,
            base_content=_text(lines[start + 1:separator]),
            incoming_content=_text(lines[separator + 1:end]),
            base_label=base_label,
            incoming_label=lines[end][len(CLOSE_MARKER):].strip(),
            context_before=_text(
                lines[max(0, start - context_lines):start]
            ),
            context_after=_text(lines[end + 1:end + 1 + context_lines]),
        ))

        # Regions never nest; resume after the closing marker
        i = end + 1

    return regions


def _text(lines: list[str]) -> str:
    # Region text is always "\n"-separated, whatever the file uses
    return "\n".join(line.removesuffix("\r") for line in lines)


def _find(lines: list[str], marker: str, begin: int) -> int | None:
    for j in range(begin, len(lines)):
        if lines[j].startswith(marker):
            return j
    return None


def split_lines(text: str) -> tuple[list[str], bool]:
    """Split text on "\\n" only.

    A "\\r" before the newline stays part of its line, and so does any
    other character str.splitlines() would treat as a line break, so
    joining the lines with "\\n" gives back the original text.

    Returns:
        (lines, whether the text ended with a newline)
    """
    if not text:
        return [], False
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
        return lines, True
    return lines, False


def read_lines(path: Path) -> tuple[list[str], bool]:
    """Read a conflicted file.

    Line numbers match git's: only "\\n" ends a line.

    Returns:
        (lines without "\\n", whether the file ended with a newline)

    Raises:
        ConflictFileError: If the path is missing, not a regular file
            or not UTF-8 text
    """
    path = Path(path)
    if not path.exists():
        raise ConflictFileError(path)
    if not path.is_file():
        raise ConflictFileError(path, f"Not a regular file: {path}")

    try:
        text = path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as e:
        raise ConflictFileError(
            path, f"{path} is not UTF-8 text (byte {e.start})"
        ) from e
    return split_lines(text)


def parse_file(
    path: Path,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> list[ConflictRegion]:
    """Parse conflict regions from a file on disk.

    Raises:
        ConflictFileError: If the path is missing or not a regular file
        MalformedConflictError: If the file ends inside a region
    """
    lines, _ = read_lines(path)
    regions = parse(lines, context_lines)
    logger.debug(
        "Parsed conflict file",
        file=str(path),
        lines=len(lines),
        regions=len(regions),
    )
    return regions


__all__ = [
    "parse",
    "parse_file",
    "read_lines",
    "split_lines",
    "OPEN_MARKER",
    "SEPARATOR",
    "CLOSE_MARKER",
]
