"""Data models."""

from .error_record import ErrorLevel, ProcessError
from .image_version import ImageVersion, is_version_collection, is_version_record, make_version_id
from .operation_kind import OperationKind, OperationState
from .operation_record import OperationRecord
from .progress_event import ProgressEvent, ProgressEventType
from .transform import TransformSpec

__all__ = [
    "ErrorLevel",
    "ImageVersion",
    "OperationKind",
    "OperationRecord",
    "OperationState",
    "ProcessError",
    "ProgressEvent",
    "ProgressEventType",
    "TransformSpec",
    "is_version_collection",
    "is_version_record",
    "make_version_id",
]
