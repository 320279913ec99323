"""Outcome of one executed operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class OperationRecord:
    op_id: str
    kind: str
    image_id: str
    status: str
    version_id: Optional[str] = None
    target_path: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    elapsed_time_sec: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == "SUCCESS"

    def to_dict(self) -> dict[str, object]:
        return {
            "op_id": self.op_id,
            "kind": self.kind,
            "image_id": self.image_id,
            "version_id": self.version_id,
            "target_path": self.target_path,
            "status": self.status,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "elapsed_time_sec": self.elapsed_time_sec,
        }
