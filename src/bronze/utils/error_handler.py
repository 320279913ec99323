"""Error collection and reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from typing import List, Optional

from ..models.error_record import ErrorLevel, ProcessError


@dataclass
class ErrorHandler:
    """Collects errors and warnings for one run; safe to use from worker threads."""

    errors: List[ProcessError] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add(self, error: ProcessError) -> None:
        with self._lock:
            self.errors.append(error)

    def add_info(self, code: str, message: str, file_path: Optional[str] = None) -> None:
        self.add(ProcessError(code=code, level=ErrorLevel.INFO, message=message, file_path=file_path))

    def add_warning(self, code: str, message: str, file_path: Optional[str] = None) -> None:
        self.add(ProcessError(code=code, level=ErrorLevel.RECOVERABLE, message=message, file_path=file_path))

    def add_fatal(
        self,
        code: str,
        message: str,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        self.add(
            ProcessError(
                code=code,
                level=ErrorLevel.FATAL,
                message=message,
                file_path=file_path,
                operation=operation,
            )
        )

    def get_by_level(self, level: ErrorLevel) -> List[ProcessError]:
        return [error for error in self.errors if error.level == level]

    def has_code(self, code: str) -> bool:
        return any(error.code == code for error in self.errors)

    def to_dicts(self) -> List[dict[str, object]]:
        return [error.to_dict() for error in self.errors]
