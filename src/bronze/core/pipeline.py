"""One run end to end: load, plan, execute, persist."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from ..config import ConfigManager
from ..models import ProgressEvent
from ..utils import reporting
from ..utils.error_handler import ErrorHandler
from ..utils.logger import get_logger
from .executor import ExecutionResult, OperationExecutor
from .image import Image
from .operation import ImageEngine, Operation
from .planner import ProfilePlan, ProfilePlanner
from .snapshot import load_snapshot, write_snapshot


@dataclass
class RunResult:
    dry: bool
    planned: dict[str, int]
    operations: list[Operation]
    plans: list[ProfilePlan]
    errors: ErrorHandler
    execution: Optional[ExecutionResult] = None
    snapshot: Optional[dict[str, Any]] = None
    summary: str = ""
    failed_count: int = 0


class Pipeline:
    def __init__(
        self,
        config: ConfigManager,
        logger=None,
        engine: Optional[ImageEngine] = None,
    ) -> None:
        self.config = config
        self.logger = logger or get_logger(self.__class__.__name__)
        self.engine = engine

    def run(
        self,
        *,
        profiles: Optional[Iterable[str]] = None,
        progress_callback: Optional[Callable[[ProgressEvent], None]] = None,
    ) -> RunResult:
        error_handler = ErrorHandler()
        info_file = self.config.info_file
        last_result = load_snapshot(info_file, error_handler=error_handler, logger=self.logger)

        selected = self._select_profiles(profiles)
        planner = ProfilePlanner(self.config, self.logger, error_handler=error_handler)

        self.logger.debug("Preparing operations...")
        plans: list[ProfilePlan] = []
        for profile_name, profile in selected.items():
            saved = last_result.get(profile_name)
            plans.append(planner.prepare_profile(profile_name, profile, saved))

        operations: list[Operation] = []
        owners: dict[Operation, Image] = {}
        for plan in plans:
            operations.extend(plan.operations)
            owners.update(plan.owners)

        planned = reporting.summarize_operations(operations)

        if self.config.dry:
            summary = reporting.format_plan_summary(planned, dry=True)
            self.logger.info(summary)
            for op in operations:
                self.logger.debug(f"{op.kind.value} {op.target_path or op.image_id}")
            return RunResult(
                dry=True,
                planned=planned,
                operations=operations,
                plans=plans,
                errors=error_handler,
                summary=summary,
            )

        self.logger.info(reporting.format_plan_summary(planned) + " Beginning...")
        executor = OperationExecutor(
            self.config,
            engine=self.engine,
            logger=self.logger,
            error_handler=error_handler,
        )
        execution = executor.execute(operations, owners, progress_callback=progress_callback)

        snapshot: dict[str, Any] = {}
        if profiles is not None:
            # Profiles left out of this run keep their prior state.
            snapshot.update(
                {name: data for name, data in last_result.items() if name not in selected}
            )
        for plan in plans:
            snapshot[plan.name] = plan.registry.to_dict()

        if info_file is not None:
            write_snapshot(info_file, snapshot, logger=self.logger)

        summary = f"Done. Success: {len(execution.succeeded)}, Failed: {len(execution.failed)}"
        self.logger.info(summary)
        return RunResult(
            dry=False,
            planned=planned,
            operations=operations,
            plans=plans,
            errors=error_handler,
            execution=execution,
            snapshot=snapshot,
            summary=summary,
            failed_count=len(execution.failed),
        )

    def _select_profiles(self, names: Optional[Iterable[str]]) -> dict[str, dict[str, Any]]:
        profiles = self.config.profiles
        if names is None:
            return dict(profiles)
        wanted = list(names)
        unknown = [name for name in wanted if name not in profiles]
        if unknown:
            raise KeyError(f"Unknown profile(s): {', '.join(unknown)}")
        return {name: profiles[name] for name in wanted}
