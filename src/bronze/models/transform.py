"""Effective configuration of one transform in one output format."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class TransformSpec:
    format_name: str
    format_options: dict[str, Any] = field(default_factory=dict)
    resize: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, object]:
        return {
            "formatName": self.format_name,
            "formatOptions": copy.deepcopy(self.format_options),
            "resize": copy.deepcopy(self.resize),
        }

    @property
    def target_width(self) -> Optional[int]:
        if not self.resize:
            return None
        width = self.resize.get("width")
        return int(width) if width else None
