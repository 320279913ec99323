"""Plan summaries and console progress."""

from __future__ import annotations

from typing import Iterable, Optional, TextIO

from tqdm import tqdm

from ..models import OperationKind, ProgressEvent, ProgressEventType


def summarize_operations(operations: Iterable[object]) -> dict[str, int]:
    """Count planned operations per kind, every kind listed."""
    counts = {kind.value: 0 for kind in OperationKind}
    for op in operations:
        kind = getattr(op, "kind")
        key = kind.value if isinstance(kind, OperationKind) else str(kind)
        counts[key] = counts.get(key, 0) + 1
    return counts


def format_plan_summary(counts: dict[str, int], *, dry: bool = False) -> str:
    total = sum(counts.values())
    details = ", ".join(f"{kind}: {count}" for kind, count in counts.items() if count)
    prefix = "Dry run. " if dry else ""
    if not details:
        return f"{prefix}Total: 0 ops. Nothing to do."
    return f"{prefix}Total: {total} ops ({details})."


class ConsoleProgress:
    """tqdm bar fed with ProgressEvent objects; one bar per phase."""

    def __init__(self, stream: Optional[TextIO] = None, disable: bool = False) -> None:
        self.stream = stream
        self.disable = disable
        self.failed = 0
        self.bar: Optional[tqdm] = None

    def __call__(self, event: ProgressEvent) -> None:
        if event.event_type is ProgressEventType.PHASE_START:
            self._close()
            self.failed = 0
            self.bar = tqdm(
                total=event.total,
                desc=event.phase_name,
                unit="op",
                file=self.stream,
                disable=self.disable,
            )
            return
        if self.bar is None:
            return
        if event.event_type is ProgressEventType.OP_DONE:
            if event.status != "SUCCESS":
                self.failed += 1
                self.bar.set_postfix(failed=self.failed)
            self.bar.update(1)
        elif event.event_type is ProgressEventType.PHASE_END:
            self._close()

    def _close(self) -> None:
        if self.bar is not None:
            self.bar.close()
            self.bar = None
