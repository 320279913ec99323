"""Execute planned operations with bounded concurrency."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional

from ..config import ConfigManager
from ..models import OperationRecord, ProgressEvent, ProgressEventType
from ..utils.error_handler import ErrorHandler
from ..utils.image_utils import PillowImageEngine, SourceCache
from ..utils.logger import get_logger
from .image import Image
from .operation import ImageEngine, Operation


@dataclass
class ExecutionResult:
    records: list[OperationRecord]

    @property
    def succeeded(self) -> list[OperationRecord]:
        return [record for record in self.records if record.succeeded]

    @property
    def failed(self) -> list[OperationRecord]:
        return [record for record in self.records if not record.succeeded]


class OperationExecutor:
    """Runs every operation once; a failure never cancels its siblings.

    Dependent operations wait on their dependency's future, so the executor
    itself needs no ordering beyond submitting in planning order.
    """

    def __init__(
        self,
        config: ConfigManager | None = None,
        engine: Optional[ImageEngine] = None,
        logger=None,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        self.config = config or ConfigManager()
        self.logger = logger or get_logger(self.__class__.__name__)
        self.error_handler = error_handler or ErrorHandler()
        self.max_workers = max(1, int(self.config.get("execution.max_workers", 4)))
        self.engine = engine or PillowImageEngine(
            SourceCache(int(self.config.get("execution.source_cache_size", 8)))
        )

    def execute(
        self,
        operations: Iterable[Operation],
        owners: Optional[Mapping[Operation, Image]] = None,
        *,
        progress_callback: Optional[Callable[[ProgressEvent], None]] = None,
        phase_name: str = "Execute",
    ) -> ExecutionResult:
        ops = list(operations)
        owners = owners or {}
        total = len(ops)
        completed = 0
        records: list[Optional[OperationRecord]] = [None] * total

        self._emit(
            progress_callback,
            ProgressEvent(
                event_type=ProgressEventType.PHASE_START,
                phase_name=phase_name,
                completed=0,
                total=total,
            ),
        )

        if ops:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, total)) as pool:
                pending = {
                    pool.submit(self._run_operation, op, owners.get(op)): index
                    for index, op in enumerate(ops)
                }
                for future in as_completed(pending):
                    index = pending[future]
                    record = future.result()
                    records[index] = record
                    completed += 1
                    self._emit(
                        progress_callback,
                        ProgressEvent(
                            event_type=ProgressEventType.OP_DONE,
                            phase_name=phase_name,
                            completed=completed,
                            total=total,
                            op_kind=record.kind,
                            target_path=record.target_path,
                            status=record.status,
                            elapsed_ms=int(record.elapsed_time_sec * 1000),
                        ),
                    )

        clear_cache = getattr(getattr(self.engine, "source_cache", None), "clear", None)
        if callable(clear_cache):
            clear_cache()

        result = ExecutionResult(records=[record for record in records if record is not None])
        self._emit(
            progress_callback,
            ProgressEvent(
                event_type=ProgressEventType.PHASE_END,
                phase_name=phase_name,
                completed=completed,
                total=total,
                status="FAILED" if result.failed else "DONE",
            ),
        )
        return result

    def _run_operation(self, op: Operation, owner: Optional[Image]) -> OperationRecord:
        error = op.run(self.engine).exception()
        elapsed = op.elapsed_sec
        if owner is not None:
            owner.apply_result(op)

        target = str(op.target_path) if op.target_path is not None else None
        if error is None:
            self.logger.debug(f"{op.kind.value} {target or op.image_id}: done")
            return OperationRecord(
                op_id=op.op_id,
                kind=op.kind.value,
                image_id=op.image_id,
                version_id=op.version_id,
                target_path=target,
                status="SUCCESS",
                elapsed_time_sec=elapsed,
            )

        error_code = f"E-{op.kind.value}"
        self.logger.error(
            f"Failed operation\n - type: {op.kind.value}\n - target: {target or op.image_id}\n - message: {error}"
        )
        self.error_handler.add_fatal(
            error_code,
            str(error),
            file_path=target,
            operation=op.kind.value,
        )
        return OperationRecord(
            op_id=op.op_id,
            kind=op.kind.value,
            image_id=op.image_id,
            version_id=op.version_id,
            target_path=target,
            status="FAILURE",
            error_code=error_code,
            error_message=str(error),
            elapsed_time_sec=elapsed,
        )

    def _emit(
        self,
        callback: Optional[Callable[[ProgressEvent], None]],
        event: ProgressEvent,
    ) -> None:
        if callback is None:
            return
        callback(event)
