"""Run progress events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ProgressEventType(str, Enum):
    PHASE_START = "PHASE_START"
    OP_DONE = "OP_DONE"
    PHASE_END = "PHASE_END"


@dataclass
class ProgressEvent:
    event_type: ProgressEventType
    completed: int
    total: int
    timestamp: datetime = field(default_factory=datetime.now)
    phase_name: Optional[str] = None
    op_kind: Optional[str] = None
    target_path: Optional[str] = None
    status: Optional[str] = None
    elapsed_ms: Optional[int] = None
