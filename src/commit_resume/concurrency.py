"""Bounded-concurrency execution of asynchronous work items.

All three fan-out stages (commit collection, month sections, repository
summaries) go through :func:`run_with_concurrency`.  Admission is a sliding
window: at most ``limit`` work items are in flight, and a finished item is
replaced by the next queued one immediately.  Results come back index-aligned
with the submitted work; failures are captured per item and never stop the
batch, so aggregation code decides what a failure means.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

WorkItem = Callable[[], Awaitable[T]]


@dataclass(slots=True)
class TaskOutcome(Generic[T]):
    """Result slot for one work item."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class CompletionEvent(Generic[T]):
    """Emitted once per work item, in completion order."""

    index: int
    outcome: TaskOutcome[T]
    completed: int
    total: int


async def run_with_concurrency(
    tasks: Sequence[WorkItem[T]],
    limit: int,
    *,
    on_complete: Callable[[CompletionEvent[T]], None] | None = None,
) -> list[TaskOutcome[T]]:
    """Run ``tasks`` with at most ``limit`` in flight and return ordered outcomes."""

    if limit < 1:
        raise ValueError(f"Concurrency limit must be >= 1, got {limit}")

    total = len(tasks)
    outcomes: list[TaskOutcome[T] | None] = [None] * total
    in_flight: dict[asyncio.Task[TaskOutcome[T]], int] = {}
    completed = 0

    def _settle(done: set[asyncio.Task[TaskOutcome[T]]]) -> None:
        nonlocal completed
        # asyncio.wait returns an unordered set; settle in submission order
        for handle in sorted(done, key=in_flight.__getitem__):
            index = in_flight.pop(handle)
            outcome = handle.result()
            outcomes[index] = outcome
            completed += 1
            if on_complete is not None:
                on_complete(
                    CompletionEvent(index=index, outcome=outcome, completed=completed, total=total),
                )

    try:
        for index, work in enumerate(tasks):
            handle = asyncio.ensure_future(_capture(work))
            in_flight[handle] = index
            if len(in_flight) >= limit:
                done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
                _settle(done)

        while in_flight:
            done, _ = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
            _settle(done)
    except BaseException:
        await _cancel_all(list(in_flight))
        raise

    return [outcome for outcome in outcomes if outcome is not None]


async def _capture(work: WorkItem[T]) -> TaskOutcome[T]:
    try:
        return TaskOutcome(value=await work())
    except Exception as error:  # noqa: BLE001
        logger.debug("Work item failed: %s", error, exc_info=True)
        return TaskOutcome(error=error)


async def _cancel_all(handles: list[asyncio.Task[TaskOutcome[T]]]) -> None:
    for handle in handles:
        handle.cancel()
    if handles:
        await asyncio.gather(*handles, return_exceptions=True)


@dataclass(slots=True)
class ProgressTracker:
    """Counts completion events for one stage and renders status lines."""

    total: int
    label: str
    completed: int = 0
    succeeded: int = 0

    @property
    def failed(self) -> int:
        return self.completed - self.succeeded

    def record(self, *, ok: bool) -> None:
        self.completed += 1
        if ok:
            self.succeeded += 1

    def status_line(self) -> str:
        return f"[{self.completed}/{self.total}] {self.label}..."

    def summary_line(self) -> str:
        return f"{self.succeeded}/{self.total} succeeded"
