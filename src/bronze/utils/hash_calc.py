"""Transform fingerprinting."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Union

from ..models.transform import TransformSpec


def canonical_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def fingerprint_transform(
    transform: Union[TransformSpec, Mapping[str, Any]],
    algorithm: str = "md5",
) -> str:
    """Digest of a transform's effective configuration.

    Key order never affects the result; any change to the format, its encode
    options or the resize options does.
    """
    payload = transform.to_dict() if isinstance(transform, TransformSpec) else dict(transform)
    hasher = hashlib.new(algorithm.lower())
    hasher.update(canonical_json(payload).encode("utf-8"))
    return hasher.hexdigest()


def generate_op_id(kind: str, image_src: str, target: str | None, extra: dict | None = None) -> str:
    payload = {
        "kind": kind,
        "src": str(image_src).replace("\\", "/"),
        "dst": str(target).replace("\\", "/") if target is not None else None,
        "extra": extra or {},
    }
    digest = hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()
    return f"op_{digest[:16]}"
