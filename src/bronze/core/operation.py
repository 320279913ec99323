"""Run-scoped units of work against one image version."""

from __future__ import annotations

from concurrent.futures import Future, wait
from dataclasses import dataclass
from pathlib import Path
import threading
import time
from typing import Any, Optional, Protocol, Tuple, Union

from ..errors import DependencyFailedError
from ..models.operation_kind import OperationKind, OperationState
from ..models.transform import TransformSpec
from ..utils import file_ops


class ImageEngine(Protocol):
    def read_size(self, source_path: Path) -> Tuple[int, int]: ...

    def generate(self, source_path: Path, target_path: Path, transform: TransformSpec) -> Tuple[int, int]: ...

    def measure(self, sample_path: Path) -> Tuple[int, str]: ...


@dataclass(frozen=True)
class Generate:
    source_path: Path
    transform: TransformSpec
    # Runs only once this operation settled (a DELETE of the old file).
    after: Optional["Operation"] = None


@dataclass(frozen=True)
class Delete:
    pass


@dataclass(frozen=True)
class Rename:
    from_path: Path


@dataclass(frozen=True)
class RetrieveSize:
    source_path: Path


@dataclass(frozen=True)
class MeasureBrightness:
    sample_version_id: str
    sample_path: Path
    depends_on: Optional["Operation"] = None


Payload = Union[Generate, Delete, Rename, RetrieveSize, MeasureBrightness]

_PAYLOAD_KINDS = {
    Generate: OperationKind.GENERATE,
    Delete: OperationKind.DELETE,
    Rename: OperationKind.RENAME,
    RetrieveSize: OperationKind.RETRIEVE_SIZE,
    MeasureBrightness: OperationKind.MEASURE_BRIGHTNESS,
}


@dataclass(frozen=True)
class OutputSize:
    width: int
    height: int


@dataclass(frozen=True)
class BrightnessMeasure:
    brightness: int
    dominant: str


class Operation:
    """One planned action, bound to a future that resolves exactly once.

    `run` is the single entry point: the first call executes the payload,
    every later call (from the executor or from a dependent operation) just
    returns the same future.
    """

    def __init__(
        self,
        image_id: str,
        payload: Payload,
        *,
        version_id: Optional[str] = None,
        target_path: Optional[Path] = None,
        op_id: Optional[str] = None,
        config=None,
        logger=None,
    ) -> None:
        self.kind = _PAYLOAD_KINDS[type(payload)]
        self.image_id = image_id
        self.payload = payload
        self.version_id = version_id
        self.target_path = Path(target_path) if target_path is not None else None
        self.op_id = op_id or f"op_{id(self):x}"
        self.future: Future = Future()
        self.state = OperationState.PENDING
        self._config = config
        self._logger = logger
        self.started_at: Optional[float] = None
        self.finished_at: Optional[float] = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"Operation({self.kind.value}, image={self.image_id!r}, "
            f"version={self.version_id!r}, target={self.target_path}, state={self.state.value})"
        )

    @property
    def transform(self) -> Optional[TransformSpec]:
        if isinstance(self.payload, Generate):
            return self.payload.transform
        return None

    @property
    def done(self) -> bool:
        return self.state in {OperationState.SUCCESS, OperationState.FAILURE}

    @property
    def elapsed_sec(self) -> float:
        """Time spent executing, whichever thread ran it; waits on dependencies included."""
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return self.finished_at - self.started_at

    def run(self, engine: ImageEngine) -> Future:
        with self._lock:
            if self.state is not OperationState.PENDING:
                return self.future
            self.state = OperationState.RUNNING
            if not self.future.set_running_or_notify_cancel():
                self.state = OperationState.FAILURE
                return self.future

        self.started_at = time.time()
        try:
            result = self._execute(engine)
        except Exception as exc:  # noqa: BLE001 - failure belongs to the future
            self.finished_at = time.time()
            self.state = OperationState.FAILURE
            self.future.set_exception(exc)
        else:
            self.finished_at = time.time()
            self.state = OperationState.SUCCESS
            self.future.set_result(result)
        return self.future

    def _execute(self, engine: ImageEngine) -> Any:
        payload = self.payload
        if isinstance(payload, Generate):
            return self._generate(engine, payload)
        if isinstance(payload, Delete):
            return file_ops.delete_file(self._require_target(), config=self._config, logger=self._logger)
        if isinstance(payload, Rename):
            target = self._require_target()
            file_ops.move_file(payload.from_path, target, config=self._config, logger=self._logger)
            return target
        if isinstance(payload, RetrieveSize):
            width, height = engine.read_size(payload.source_path)
            return OutputSize(width=width, height=height)
        if isinstance(payload, MeasureBrightness):
            return self._measure_brightness(engine, payload)
        raise TypeError(f"Unknown operation payload: {payload!r}")

    def _generate(self, engine: ImageEngine, payload: Generate) -> OutputSize:
        if payload.after is not None:
            # Outcome ignored: a failed delete must not block regeneration.
            wait([payload.after.run(engine)])
        target = self._require_target()
        file_ops.ensure_parent_dir(target, config=self._config, logger=self._logger)
        width, height = engine.generate(payload.source_path, target, payload.transform)
        return OutputSize(width=width, height=height)

    def _measure_brightness(self, engine: ImageEngine, payload: MeasureBrightness) -> BrightnessMeasure:
        if payload.depends_on is not None:
            dependency = payload.depends_on.run(engine)
            error = dependency.exception()
            if error is not None:
                raise DependencyFailedError(
                    f"{payload.depends_on.kind.value} of {payload.sample_version_id} failed: {error}"
                ) from error
        brightness, dominant = engine.measure(payload.sample_path)
        return BrightnessMeasure(brightness=brightness, dominant=dominant)

    def _require_target(self) -> Path:
        if self.target_path is None:
            raise ValueError(f"{self.kind.value} operation needs a target path")
        return self.target_path
