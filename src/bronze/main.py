from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from . import __version__
from .config import ConfigManager
from .core import Pipeline
from .utils import reporting
from .utils.logger import get_logger, set_console_level


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = ConfigManager(Path(args.config))
    except (OSError, ValueError) as exc:
        get_logger("Pipeline").error(f"Could not load config {args.config}: {exc}")
        return 2
    if args.info_file:
        config.set("infoFile", args.info_file)
    if args.dry:
        config.set("dry", True)
    if args.workers is not None:
        config.set("execution.max_workers", args.workers)
    if args.verbose:
        set_console_level(logging.DEBUG)
    log_file = config.get("logging.file")
    logger = get_logger("Pipeline", Path(log_file) if log_file else None)

    errors = config.validate_config()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 2

    unknown = [name for name in args.profile or [] if name not in config.profiles]
    if unknown:
        logger.error(f"Unknown profile(s): {', '.join(unknown)}")
        return 2

    print(f"bronze v{__version__}")
    pipeline = Pipeline(config, logger=logger)
    progress = None if config.dry or args.quiet else reporting.ConsoleProgress()
    result = pipeline.run(profiles=args.profile or None, progress_callback=progress)

    print(result.summary)
    return 1 if result.failed_count else 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bronze", description="Build image variants incrementally")
    parser.add_argument("--config", default="bronze.json", help="Path to config file")
    parser.add_argument("--info-file", help="Snapshot file (overrides infoFile)")
    parser.add_argument("--dry", action="store_true", help="Plan only, report the operations")
    parser.add_argument(
        "--profile",
        action="append",
        help="Profile to run (repeatable); defaults to every profile",
    )
    parser.add_argument("--workers", type=int, help="Concurrent operations")
    parser.add_argument("--quiet", action="store_true", help="No progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser
