"""JSON merge logs."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from mergepilot.conflict.models import ResolutionLogEntry
from mergepilot.core.log import logger

TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"


def write_merge_log(
    log_dir: Path,
    file_path: Path,
    entries: list[ResolutionLogEntry],
    now: datetime | None = None,
) -> Path | None:
    """Write one JSON record of a resolution run.

    Args:
        log_dir: Directory receiving the log (created if missing)
        file_path: File that was resolved
        entries: One entry per decided region
        now: Timestamp for the file name (default: current time)

    Returns:
        Path of the written log, or None if there was nothing to log
    """
    if not entries:
        return None

    now = now or datetime.now()
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"{now.strftime(TIMESTAMP_FORMAT)}.json"

    record = {
        "file": str(file_path),
        "timestamp": now.isoformat(),
        "entries": [entry.model_dump(mode="json") for entry in entries],
    }
    log_path.write_text(json.dumps(record, indent=2) + "\n", encoding="utf-8")
    logger.info("Wrote merge log", path=str(log_path), entries=len(entries))
    return log_path


__all__ = ["write_merge_log"]
