"""Logging helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

_console_level = logging.INFO


def get_logger(name: str, log_file: Optional[Path] = None) -> logging.Logger:
    logger = logging.getLogger(f"bronze.{name}")
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)

    log_path = log_file or (Path.cwd() / "error.log")
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = logging.FileHandler(log_path, encoding="utf-8", delay=True)
    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(_console_level)
    stream_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)

    return logger


def set_console_level(level: int) -> None:
    """Apply `level` to the console handler of every bronze logger."""
    global _console_level
    _console_level = level
    for name, candidate in logging.root.manager.loggerDict.items():
        if not name.startswith("bronze.") or not isinstance(candidate, logging.Logger):
            continue
        for handler in candidate.handlers:
            if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                handler.setLevel(level)
