from pathlib import Path
import threading

import pytest

from bronze.core import (
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
from bronze.errors import DependencyFailedError
from bronze.models import TransformSpec


class FakeEngine:
    def __init__(self, fail_generate: bool = False) -> None:
        self.fail_generate = fail_generate
        self.calls: list[tuple[str, Path]] = []
        self._lock = threading.Lock()

    def read_size(self, source_path: Path):
        with self._lock:
            self.calls.append(("read_size", source_path))
        return (1000, 800)

    def generate(self, source_path: Path, target_path: Path, transform: TransformSpec):
        with self._lock:
            self.calls.append(("generate", target_path))
        if self.fail_generate:
            raise OSError("disk full")
        target_path.write_bytes(b"generated")
        return (200, 160)

    def measure(self, sample_path: Path):
        with self._lock:
            self.calls.append(("measure", sample_path))
        return (42, "#112233")


def test_kind_follows_payload(tmp_path: Path) -> None:
    assert Operation("a", Delete(), target_path=tmp_path / "x").kind is OperationKind.DELETE
    assert Operation("a", RetrieveSize(tmp_path / "a.jpg")).kind is OperationKind.RETRIEVE_SIZE
    assert Operation("a", Rename(tmp_path / "x")).kind is OperationKind.RENAME


def test_run_executes_once(tmp_path: Path) -> None:
    engine = FakeEngine()
    op = Operation(
        "a",
        Generate(tmp_path / "a.jpg", TransformSpec("jpeg")),
        version_id="thumb-jpeg",
        target_path=tmp_path / "out" / "a-thumb.jpeg",
    )
    assert op.state is OperationState.PENDING

    first = op.run(engine)
    second = op.run(engine)

    assert first is second is op.future
    assert op.state is OperationState.SUCCESS
    assert op.done
    assert first.result() == OutputSize(200, 160)
    assert engine.calls == [("generate", tmp_path / "out" / "a-thumb.jpeg")]


def test_failure_settles_future(tmp_path: Path) -> None:
    op = Operation(
        "a",
        Generate(tmp_path / "a.jpg", TransformSpec("jpeg")),
        target_path=tmp_path / "a-thumb.jpeg",
    )

    future = op.run(FakeEngine(fail_generate=True))

    assert op.state is OperationState.FAILURE
    assert isinstance(future.exception(), OSError)


def test_delete_and_rename(tmp_path: Path) -> None:
    old = tmp_path / "a-thumb.jpeg"
    old.write_bytes(b"data")
    moved = tmp_path / "small" / "a.jpeg"

    rename = Operation("a", Rename(old), target_path=moved)
    assert rename.run(FakeEngine()).result() == moved
    assert moved.exists() and not old.exists()

    delete = Operation("a", Delete(), target_path=moved)
    assert delete.run(FakeEngine()).result() == "DELETED"
    assert not moved.exists()


def test_delete_missing_file_fails(tmp_path: Path) -> None:
    delete = Operation("a", Delete(), target_path=tmp_path / "missing.jpeg")
    assert isinstance(delete.run(FakeEngine()).exception(), FileNotFoundError)


def test_generate_runs_pending_delete_first(tmp_path: Path) -> None:
    target = tmp_path / "a-thumb.jpeg"
    target.write_bytes(b"stale")
    engine = FakeEngine()
    delete = Operation("a", Delete(), target_path=target)
    generate = Operation(
        "a",
        Generate(tmp_path / "a.jpg", TransformSpec("jpeg"), after=delete),
        target_path=target,
    )

    generate.run(engine)

    assert delete.state is OperationState.SUCCESS
    assert generate.state is OperationState.SUCCESS
    assert target.read_bytes() == b"generated"


def test_generate_ignores_failed_delete(tmp_path: Path) -> None:
    target = tmp_path / "a-thumb.jpeg"
    delete = Operation("a", Delete(), target_path=target)
    generate = Operation(
        "a",
        Generate(tmp_path / "a.jpg", TransformSpec("jpeg"), after=delete),
        target_path=target,
    )

    generate.run(FakeEngine())

    assert delete.state is OperationState.FAILURE
    assert generate.state is OperationState.SUCCESS


def test_measure_waits_for_dependency(tmp_path: Path) -> None:
    engine = FakeEngine()
    sample = tmp_path / "a-thumb.jpeg"
    generate = Operation("a", Generate(tmp_path / "a.jpg", TransformSpec("jpeg")), target_path=sample)
    measure = Operation(
        "a",
        MeasureBrightness("thumb-jpeg", sample, depends_on=generate),
        target_path=sample,
    )

    result = measure.run(engine).result()

    assert result == BrightnessMeasure(brightness=42, dominant="#112233")
    assert [call[0] for call in engine.calls] == ["generate", "measure"]


def test_measure_fails_with_dependency(tmp_path: Path) -> None:
    engine = FakeEngine(fail_generate=True)
    sample = tmp_path / "a-thumb.jpeg"
    generate = Operation("a", Generate(tmp_path / "a.jpg", TransformSpec("jpeg")), target_path=sample)
    measure = Operation("a", MeasureBrightness("thumb-jpeg", sample, depends_on=generate))

    error = measure.run(engine).exception()

    assert isinstance(error, DependencyFailedError)
    assert ("measure", sample) not in engine.calls


def test_missing_target_fails(tmp_path: Path) -> None:
    op = Operation("a", Delete())
    with pytest.raises(ValueError):
        op.run(FakeEngine()).result()


def test_elapsed_is_recorded_by_the_running_thread(tmp_path: Path) -> None:
    op = Operation("a", RetrieveSize(tmp_path / "a.jpg"))
    assert op.elapsed_sec == 0.0

    op.run(FakeEngine())

    assert op.started_at is not None
    assert op.finished_at >= op.started_at
    assert op.elapsed_sec == op.finished_at - op.started_at
