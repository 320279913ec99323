"""Incremental build engine."""

from .executor import ExecutionResult, OperationExecutor
from .image import Image
from .operation import (
    BrightnessMeasure,
    Delete,
    Generate,
    MeasureBrightness,
    Operation,
    OperationKind,
    OperationState,
    OutputSize,
    Rename,
    RetrieveSize,
)
from .pipeline import Pipeline, RunResult
from .planner import ProfilePlan, ProfilePlanner
from .registry import ImageRegistry
from .snapshot import load_snapshot, write_snapshot

__all__ = [
    "BrightnessMeasure",
    "Delete",
    "ExecutionResult",
    "Generate",
    "Image",
    "ImageRegistry",
    "MeasureBrightness",
    "Operation",
    "OperationExecutor",
    "OperationKind",
    "OperationState",
    "OutputSize",
    "Pipeline",
    "ProfilePlan",
    "ProfilePlanner",
    "Rename",
    "RetrieveSize",
    "RunResult",
    "load_snapshot",
    "write_snapshot",
]
