"""Persisted record of one generated artifact."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..core.operation import Operation

REQUIRED_VERSION_KEYS = ("id", "format", "transform", "path", "hash")


def make_version_id(transform_name: str, format_name: str) -> str:
    return f"{transform_name}-{format_name}"


def is_version_record(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    return all(isinstance(value.get(key), str) and value.get(key) for key in REQUIRED_VERSION_KEYS)


def is_version_collection(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    return all(is_version_record(item) for item in value.values())


@dataclass
class ImageVersion:
    id: str
    transform: str
    format: str
    path: str
    hash: str
    width: Optional[int] = None
    height: Optional[int] = None
    # Run-scoped: the operation that will produce this version's file.
    operation: Optional["Operation"] = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "id": self.id,
            "transform": self.transform,
            "format": self.format,
            "path": self.path,
            "hash": self.hash,
        }
        if self.width is not None:
            payload["width"] = self.width
        if self.height is not None:
            payload["height"] = self.height
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageVersion":
        return cls(
            id=str(data["id"]),
            transform=str(data["transform"]),
            format=str(data["format"]),
            path=str(data["path"]),
            hash=str(data["hash"]),
            width=int(data["width"]) if data.get("width") is not None else None,
            height=int(data["height"]) if data.get("height") is not None else None,
        )
