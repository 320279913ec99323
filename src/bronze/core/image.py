"""One source image: its known versions, metadata and queued operations."""

from __future__ import annotations

import math
from pathlib import Path
import threading
from typing import Any, Optional

from ..errors import ReconcileError, SnapshotError
from ..models.image_version import ImageVersion, is_version_collection, make_version_id
from ..models.transform import TransformSpec
from ..utils.hash_calc import fingerprint_transform, generate_op_id
from ..utils.logger import get_logger
from ..utils.path_utils import same_path
from .operation import (
    BrightnessMeasure,
    Delete,
    Generate,
    MeasureBrightness,
    Operation,
    OperationKind,
    OutputSize,
    Rename,
    RetrieveSize,
)


class Image:
    """Diffs declared transforms against what was produced last time.

    Planning mutates the versions in place (paths, hashes) and queues
    operations; results of executed operations come back through
    `apply_result`.
    """

    def __init__(
        self,
        image_id: str,
        src: str,
        versions: Optional[dict[str, ImageVersion]] = None,
        *,
        width: Optional[int] = None,
        height: Optional[int] = None,
        brightness: Optional[int] = None,
        dominant: Optional[str] = None,
        config=None,
        logger=None,
    ) -> None:
        self.id = image_id
        self.src = src
        self.versions: dict[str, ImageVersion] = versions if versions is not None else {}
        self.width = width
        self.height = height
        self.brightness = brightness
        self.dominant = dominant
        self.config = config
        self.logger = logger or get_logger(self.__class__.__name__)
        self.hash_algorithm = str(config.get("hash.algorithm", "md5")) if config is not None else "md5"
        self.pending_ops: list[Operation] = []
        self._reconciled: set[str] = set()
        self._declared: dict[str, TransformSpec] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Image({self.id!r}, src={self.src!r}, versions={sorted(self.versions)})"

    @property
    def has_size(self) -> bool:
        return bool(self.width) and bool(self.height)

    @property
    def has_brightness(self) -> bool:
        return self.brightness is not None and self.dominant is not None

    def queue_size_retrieval(self) -> Optional[Operation]:
        if self.has_size:
            return None
        if any(op.kind is OperationKind.RETRIEVE_SIZE for op in self.pending_ops):
            return None
        return self._queue(self._new_operation(RetrieveSize(source_path=Path(self.src))))

    def reconcile(
        self,
        transform_name: str,
        format_name: str,
        path: Path | str,
        transform: TransformSpec,
    ) -> Optional[Operation]:
        """Decide what the (transform, format) version needs this run.

        Returns the GENERATE or RENAME operation queued for it, or None when
        the stored file already satisfies the declaration.
        """
        version_id = make_version_id(transform_name, format_name)
        if version_id in self._reconciled:
            raise ReconcileError(f"Version {version_id} of {self.id} already reconciled this run")
        self._reconciled.add(version_id)
        self._declared[version_id] = transform

        new_hash = fingerprint_transform(transform, self.hash_algorithm)
        new_path = str(path)
        version = self.versions.get(version_id)

        if version is None:
            version = ImageVersion(
                id=version_id,
                transform=transform_name,
                format=format_name,
                path=new_path,
                hash=new_hash,
            )
            self.versions[version_id] = version
            self.logger.debug(f"{self.id}: new version {version_id}")
            return self._queue_generate(version, transform)

        if not Path(version.path).exists():
            self.logger.debug(f"{self.id}: {version_id} missing at {version.path}")
            version.path = new_path
            version.hash = new_hash
            return self._queue_generate(version, transform)

        if version.hash != new_hash:
            old_path = version.path
            self.logger.debug(f"{self.id}: {version_id} is stale ({version.hash} -> {new_hash})")
            delete_op = self._queue(
                self._new_operation(Delete(), version_id=version_id, target_path=Path(old_path))
            )
            version.path = new_path
            version.hash = new_hash
            after = delete_op if same_path(old_path, new_path) else None
            return self._queue_generate(version, transform, after=after)

        if same_path(version.path, new_path):
            return None

        self.logger.debug(f"{self.id}: {version_id} moves {version.path} -> {new_path}")
        rename_op = self._new_operation(
            Rename(from_path=Path(version.path)),
            version_id=version_id,
            target_path=Path(new_path),
        )
        version.operation = rename_op
        return self._queue(rename_op)

    def queue_brightness_measure(self) -> Optional[Operation]:
        """Queue sampling of the smallest declared version.

        Must be called after every version of this image was reconciled.
        """
        if self.has_brightness:
            return None
        sample = self._smallest_declared_version()
        if sample is None:
            self.logger.debug(f"{self.id}: no version to sample for brightness")
            return None

        pending = sample.operation
        sample_path = Path(sample.path)
        if pending is not None and pending.target_path is not None:
            sample_path = pending.target_path
        return self._queue(
            self._new_operation(
                MeasureBrightness(
                    sample_version_id=sample.id,
                    sample_path=sample_path,
                    depends_on=pending,
                ),
                version_id=sample.id,
                target_path=sample_path,
            )
        )

    def unqueue_pending_ops(self) -> list[Operation]:
        """Hand over the queued operations and close this planning pass."""
        ops = list(self.pending_ops)
        self.pending_ops.clear()
        self._reconciled.clear()
        self._declared.clear()
        return ops

    def apply_result(self, op: Operation) -> None:
        """Write a settled operation's outcome back into this image."""
        if not op.future.done():
            raise ValueError(f"{op!r} has not settled")
        with self._lock:
            version = self.versions.get(op.version_id) if op.version_id else None
            if version is not None and version.operation is op:
                version.operation = None

            if op.future.exception() is not None:
                return
            result = op.future.result()

            if op.kind is OperationKind.GENERATE and version is not None and isinstance(result, OutputSize):
                version.width = result.width
                version.height = result.height
            elif op.kind is OperationKind.RENAME and version is not None:
                version.path = str(result)
            elif op.kind is OperationKind.RETRIEVE_SIZE and isinstance(result, OutputSize):
                self.width = result.width
                self.height = result.height
            elif op.kind is OperationKind.MEASURE_BRIGHTNESS and isinstance(result, BrightnessMeasure):
                self.brightness = result.brightness
                self.dominant = result.dominant

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "src": self.src}
        for key in ("width", "height", "brightness", "dominant"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        payload["versions"] = {version_id: version.to_dict() for version_id, version in self.versions.items()}
        return payload

    @classmethod
    def from_dict(cls, image_id: str, data: Any, *, config=None, logger=None) -> "Image":
        if not isinstance(data, dict):
            raise SnapshotError(f"Image {image_id}: entry is not an object")
        if not isinstance(data.get("src"), str) or not data.get("src"):
            raise SnapshotError(f"Image {image_id}: no 'src' property")
        if "versions" not in data:
            raise SnapshotError(f"Image {image_id}: no 'versions' property")
        if not is_version_collection(data["versions"]):
            raise SnapshotError(f"Image {image_id}: malformed 'versions' property")

        try:
            versions = {
                version_id: ImageVersion.from_dict(version)
                for version_id, version in data["versions"].items()
            }
            return cls(
                image_id,
                data["src"],
                versions,
                width=_optional_int(data.get("width")),
                height=_optional_int(data.get("height")),
                brightness=_optional_int(data.get("brightness")),
                dominant=str(data["dominant"]) if data.get("dominant") is not None else None,
                config=config,
                logger=logger,
            )
        except (TypeError, ValueError) as exc:
            raise SnapshotError(f"Image {image_id}: {exc}") from exc

    def _queue(self, op: Operation) -> Operation:
        self.pending_ops.append(op)
        return op

    def _queue_generate(
        self,
        version: ImageVersion,
        transform: TransformSpec,
        after: Optional[Operation] = None,
    ) -> Operation:
        version.width = None
        version.height = None
        op = self._new_operation(
            Generate(source_path=Path(self.src), transform=transform, after=after),
            version_id=version.id,
            target_path=Path(version.path),
        )
        version.operation = op
        return self._queue(op)

    def _new_operation(
        self,
        payload,
        *,
        version_id: Optional[str] = None,
        target_path: Optional[Path] = None,
    ) -> Operation:
        op = Operation(
            self.id,
            payload,
            version_id=version_id,
            target_path=target_path,
            config=self.config,
        )
        op.op_id = generate_op_id(
            op.kind.value,
            self.src,
            str(target_path) if target_path else None,
            {"image": self.id, "version": version_id},
        )
        return op

    def _smallest_declared_version(self) -> Optional[ImageVersion]:
        candidates = [
            (self._expected_width(self.versions[version_id], transform), version_id)
            for version_id, transform in self._declared.items()
            if version_id in self.versions
        ]
        if not candidates:
            return None
        _width, version_id = min(candidates)
        return self.versions[version_id]

    def _expected_width(self, version: ImageVersion, transform: TransformSpec) -> float:
        if version.operation is None and version.width:
            return float(version.width)
        resize = transform.resize or {}
        if resize.get("width"):
            return float(resize["width"])
        if resize.get("height") and self.has_size:
            return float(round(self.width * resize["height"] / self.height))
        if self.width:
            return float(self.width)
        return math.inf


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(round(float(value)))
