"""Operation kinds and lifecycle states."""

from __future__ import annotations

from enum import Enum


class OperationKind(str, Enum):
    GENERATE = "GENERATE"
    DELETE = "DELETE"
    RENAME = "RENAME"
    RETRIEVE_SIZE = "RETRIEVE_SIZE"
    MEASURE_BRIGHTNESS = "MEASURE_BRIGHTNESS"


class OperationState(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
