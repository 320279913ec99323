"""Snapshot (info file) reader and writer."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from ..utils.error_handler import ErrorHandler
from ..utils.logger import get_logger


def load_snapshot(
    snapshot_path: Optional[Path],
    *,
    error_handler: Optional[ErrorHandler] = None,
    logger=None,
) -> dict[str, Any]:
    """Prior run state keyed by profile name.

    A missing file means a first run. An unreadable or unparsable file is
    reported and treated the same way, so every image is considered new.
    """
    if snapshot_path is None or not snapshot_path.exists():
        return {}

    logger = logger or get_logger("SnapshotReader")
    try:
        with snapshot_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        message = f"Could not parse info file {snapshot_path}: {exc}"
        logger.error(message)
        if error_handler is not None:
            error_handler.add_warning("W-SNAPSHOT-UNREADABLE", message, file_path=str(snapshot_path))
        return {}

    if not isinstance(data, dict):
        message = f"Info file {snapshot_path} does not hold an object"
        logger.error(message)
        if error_handler is not None:
            error_handler.add_warning("W-SNAPSHOT-UNREADABLE", message, file_path=str(snapshot_path))
        return {}
    return data


def write_snapshot(snapshot_path: Path, data: dict[str, Any], logger=None) -> Path:
    """Write the snapshot atomically (temp file, then replace)."""
    logger = logger or get_logger("SnapshotWriter")
    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = snapshot_path.with_name(f"{snapshot_path.name}.tmp")
    with temp_path.open("w", encoding="utf-8") as handle:
        json.dump(data, handle, ensure_ascii=False, indent=2)
        handle.write("\n")
    temp_path.replace(snapshot_path)
    logger.debug(f"Wrote info file {snapshot_path}")
    return snapshot_path
