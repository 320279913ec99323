from pathlib import Path
import threading
import time

from bronze.config import ConfigManager
from bronze.core import Image, OperationExecutor
from bronze.models import ProgressEventType, TransformSpec
from bronze.utils.error_handler import ErrorHandler


class FakeEngine:
    def __init__(self, fail_targets=(), delay: float = 0.0) -> None:
        self.fail_targets = {Path(item) for item in fail_targets}
        self.delay = delay
        self.order: list[str] = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def _enter(self, label: str) -> None:
        with self._lock:
            self.order.append(label)
            self.active += 1
            self.peak = max(self.peak, self.active)
        time.sleep(self.delay)
        with self._lock:
            self.active -= 1

    def read_size(self, source_path: Path):
        self._enter(f"size:{source_path.name}")
        return (1000, 800)

    def generate(self, source_path: Path, target_path: Path, transform: TransformSpec):
        self._enter(f"generate:{target_path.name}")
        if target_path in self.fail_targets:
            raise OSError(f"cannot write {target_path}")
        target_path.write_bytes(b"generated")
        width = (transform.resize or {}).get("width", 1000)
        return (width, int(width * 0.8))

    def measure(self, sample_path: Path):
        self._enter(f"measure:{sample_path.name}")
        return (61, "#336699")


def _planned_image(tmp_path: Path, name: str, measure: bool = False) -> Image:
    image = Image(name, str(tmp_path / "in" / f"{name}.jpg"))
    image.queue_size_retrieval()
    image.reconcile("thumb", "jpeg", tmp_path / "out" / f"{name}-thumb.jpeg", TransformSpec("jpeg", {}, {"width": 200}))
    if measure:
        image.queue_brightness_measure()
    return image


def _collect(images):
    operations, owners = [], {}
    for image in images:
        for op in image.unqueue_pending_ops():
            operations.append(op)
            owners[op] = image
    return operations, owners


def test_results_written_back(tmp_path: Path) -> None:
    image = _planned_image(tmp_path, "a", measure=True)
    operations, owners = _collect([image])
    executor = OperationExecutor(ConfigManager(), engine=FakeEngine())

    result = executor.execute(operations, owners)

    assert len(result.succeeded) == 3
    assert result.failed == []
    assert (image.width, image.height) == (1000, 800)
    assert (image.brightness, image.dominant) == (61, "#336699")
    version = image.versions["thumb-jpeg"]
    assert (version.width, version.height) == (200, 160)
    assert version.operation is None


def test_failure_is_isolated(tmp_path: Path) -> None:
    images = [_planned_image(tmp_path, name) for name in ("a", "b")]
    operations, owners = _collect(images)
    handler = ErrorHandler()
    engine = FakeEngine(fail_targets=[tmp_path / "out" / "a-thumb.jpeg"])
    executor = OperationExecutor(ConfigManager(), engine=engine, error_handler=handler)

    result = executor.execute(operations, owners)

    assert len(result.records) == 4
    assert [record.kind for record in result.failed] == ["GENERATE"]
    assert result.failed[0].error_code == "E-GENERATE"
    assert handler.has_code("E-GENERATE")
    assert (tmp_path / "out" / "b-thumb.jpeg").exists()
    assert images[0].versions["thumb-jpeg"].width is None
    assert images[1].versions["thumb-jpeg"].width == 200


def test_measure_runs_after_its_sample(tmp_path: Path) -> None:
    image = _planned_image(tmp_path, "a", measure=True)
    operations, owners = _collect([image])
    engine = FakeEngine(delay=0.01)
    config = ConfigManager()
    config.set("execution.max_workers", 4)

    OperationExecutor(config, engine=engine).execute(list(reversed(operations)), owners)

    assert engine.order.index("generate:a-thumb.jpeg") < engine.order.index("measure:a-thumb.jpeg")


def test_measure_fails_when_sample_fails(tmp_path: Path) -> None:
    image = _planned_image(tmp_path, "a", measure=True)
    operations, owners = _collect([image])
    engine = FakeEngine(fail_targets=[tmp_path / "out" / "a-thumb.jpeg"])

    result = OperationExecutor(ConfigManager(), engine=engine).execute(operations, owners)

    assert sorted(record.kind for record in result.failed) == ["GENERATE", "MEASURE_BRIGHTNESS"]
    assert image.brightness is None
    assert not any(label.startswith("measure:") for label in engine.order)


def test_concurrency_is_bounded(tmp_path: Path) -> None:
    images = [_planned_image(tmp_path, f"img{index}") for index in range(6)]
    operations, owners = _collect(images)
    engine = FakeEngine(delay=0.02)
    config = ConfigManager()
    config.set("execution.max_workers", 2)

    result = OperationExecutor(config, engine=engine).execute(operations, owners)

    assert len(result.succeeded) == 12
    assert engine.peak <= 2


def test_progress_events(tmp_path: Path) -> None:
    image = _planned_image(tmp_path, "a")
    operations, owners = _collect([image])
    events = []

    OperationExecutor(ConfigManager(), engine=FakeEngine()).execute(
        operations, owners, progress_callback=events.append
    )

    assert events[0].event_type is ProgressEventType.PHASE_START
    assert events[0].total == 2
    assert [event.event_type for event in events[1:-1]] == [ProgressEventType.OP_DONE] * 2
    assert events[-1].event_type is ProgressEventType.PHASE_END
    assert events[-1].completed == 2
    assert events[-1].status == "DONE"


def test_no_operations(tmp_path: Path) -> None:
    events = []
    result = OperationExecutor(ConfigManager(), engine=FakeEngine()).execute([], progress_callback=events.append)
    assert result.records == []
    assert [event.event_type for event in events] == [ProgressEventType.PHASE_START, ProgressEventType.PHASE_END]


def test_elapsed_time_covers_inline_runs(tmp_path: Path) -> None:
    image = _planned_image(tmp_path, "a", measure=True)
    operations, owners = _collect([image])
    engine = FakeEngine(delay=0.05)
    config = ConfigManager()
    config.set("execution.max_workers", 1)

    # The measure is submitted first and runs its generate inline.
    result = OperationExecutor(config, engine=engine).execute(list(reversed(operations)), owners)

    generate = next(record for record in result.records if record.kind == "GENERATE")
    assert generate.elapsed_time_sec >= 0.04
    assert all(record.elapsed_time_sec >= 0.04 for record in result.records)
