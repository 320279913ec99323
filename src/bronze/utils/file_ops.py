"""Filesystem operations with retry."""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
import shutil
import time
from pathlib import Path
from typing import Any, Callable, Optional

from .logger import get_logger

NON_RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    FileNotFoundError,
    FileExistsError,
    IsADirectoryError,
    NotADirectoryError,
)


@dataclass
class OperationResult:
    success: bool
    error_message: Optional[str] = None
    retry_count: int = 0
    elapsed_time: float = 0.0
    value: Any = None
    error: Optional[BaseException] = None


def safe_op(
    *,
    config=None,
    max_retries: Optional[int] = None,
    backoff_base_sec: Optional[float] = None,
    backoff_cap_sec: Optional[float] = None,
    exceptions: Optional[tuple[type[BaseException], ...]] = None,
    logger=None,
) -> Callable:
    """Wrap a filesystem call with retries and exponential backoff."""

    cfg_get = getattr(config, "get", None) if config is not None else None
    if config is not None and not callable(cfg_get):
        raise TypeError("config must provide get(key, default)")

    def _setting(explicit, key: str, fallback):
        if explicit is not None:
            return explicit
        if cfg_get is None:
            return fallback
        return cfg_get(key, fallback)

    resolved_max = int(_setting(max_retries, "retry.max_retries", 2))
    resolved_base = float(_setting(backoff_base_sec, "retry.backoff_base_sec", 0.2))
    resolved_cap = float(_setting(backoff_cap_sec, "retry.backoff_cap_sec", 2.0))
    resolved_exceptions = exceptions if exceptions is not None else (OSError,)
    op_logger = logger or get_logger("FileOps")

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> OperationResult:
            start_time = time.time()
            last_error: BaseException | None = None
            attempts = 0

            for attempt in range(resolved_max + 1):
                attempts = attempt
                try:
                    value = func(*args, **kwargs)
                    return OperationResult(
                        success=True,
                        retry_count=attempt,
                        elapsed_time=time.time() - start_time,
                        value=value,
                    )
                except resolved_exceptions as exc:
                    last_error = exc
                    if isinstance(exc, NON_RETRYABLE_ERRORS):
                        break
                    if attempt < resolved_max:
                        wait_time = min(resolved_base * (2**attempt), resolved_cap)
                        op_logger.warning(
                            "Retrying file operation %s/%s in %.2fs: %s",
                            attempt + 1,
                            resolved_max,
                            wait_time,
                            exc,
                        )
                        time.sleep(wait_time)
                    else:
                        op_logger.error("File operation failed after %s retries: %s", resolved_max, exc)

            return OperationResult(
                success=False,
                error_message=str(last_error) if last_error is not None else "Unknown error",
                retry_count=attempts,
                elapsed_time=time.time() - start_time,
                error=last_error,
            )

        return wrapper

    return decorator


def _raise_for(result: OperationResult) -> Any:
    if result.success:
        return result.value
    if isinstance(result.error, OSError):
        raise result.error
    raise OSError(result.error_message)


def safe_makedirs(path: Path, *, config=None, logger=None) -> OperationResult:
    @safe_op(config=config, logger=logger)
    def _makedirs() -> None:
        path.mkdir(parents=True, exist_ok=True)

    return _makedirs()


def ensure_parent_dir(path: Path, *, config=None, logger=None) -> None:
    _raise_for(safe_makedirs(path.parent, config=config, logger=logger))


def delete_file(path: Path, *, config=None, logger=None) -> str:
    logger = logger or get_logger("FileOps")

    @safe_op(config=config, logger=logger)
    def _unlink() -> None:
        path.unlink()

    _raise_for(_unlink())
    logger.debug(f"DELETED: {path}")
    return "DELETED"


def move_file(src_path: Path, dst_path: Path, *, config=None, logger=None) -> str:
    """Move a generated file to a new location, creating parent folders."""
    logger = logger or get_logger("FileOps")
    if src_path == dst_path:
        return "UNCHANGED"
    if dst_path.exists():
        raise FileExistsError(f"Destination already exists: {dst_path}")
    if not src_path.exists():
        raise FileNotFoundError(f"Source does not exist: {src_path}")

    ensure_parent_dir(dst_path, config=config, logger=logger)

    @safe_op(config=config, logger=logger)
    def _move() -> None:
        shutil.move(str(src_path), str(dst_path))

    _raise_for(_move())
    logger.debug(f"MOVED: {src_path} -> {dst_path}")
    return "MOVED"
