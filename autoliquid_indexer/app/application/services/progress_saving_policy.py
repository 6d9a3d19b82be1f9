"""
Policies deciding which checkpoint may be persisted as task progress.

Checkpoints complete out of order when several workers process a task
concurrently. Persisting the highest completed height could record a
checkpoint as done while an earlier one is still in flight, and a restart
would then skip it. The out-of-order policy therefore only advances to the
end of the contiguous run of completed heights, and both policies throttle
writes to one per `duration` unless the task reached its target.

Both policies start a task's window on its first observation without
saving anything.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Sequence

from autoliquid_indexer.app.domain.ports.out import ProgressSavingPolicy
from autoliquid_indexer.app.domain.tasks import Task

Clock = Callable[[], float]


class SaveAfterDurationPolicy(ProgressSavingPolicy):
    """Persist the highest reported height at most once per `duration` seconds."""

    def __init__(self, duration: float, *, clock: Clock = time.monotonic) -> None:
        if duration < 0:
            raise ValueError("duration must be non-negative")
        self._duration = duration
        self._clock = clock
        self._lock = threading.Lock()
        self._last_save_time: dict[str, float | None] = {}

    def cache_progress(self, task: Task, heights: Sequence[int]) -> int | None:
        if not heights:
            return None
        height = max(heights)

        with self._lock:
            now = self._clock()
            last_save_time = self._last_save_time.get(task.task_name)

            if height >= task.target_checkpoint:
                self._last_save_time[task.task_name] = now
                return height

            if last_save_time is None:
                self._last_save_time[task.task_name] = now
                return None

            if now - last_save_time >= self._duration:
                self._last_save_time[task.task_name] = now
                return height

            return None


class OutOfOrderSaveAfterDurationPolicy(ProgressSavingPolicy):
    """
    Low-watermark tracker per task.

    `next_to_fill` is the smallest height not yet seen as completed; heights
    above it are buffered in `seen` until the gap closes. The value offered
    for saving is always `next_to_fill - 1`, so every height up to and
    including a saved checkpoint has been completed.
    """

    def __init__(self, duration: float, *, clock: Clock = time.monotonic) -> None:
        if duration < 0:
            raise ValueError("duration must be non-negative")
        self._duration = duration
        self._clock = clock
        self._lock = threading.Lock()
        self._last_save_time: dict[str, float | None] = {}
        self._seen: dict[str, set[int]] = {}
        self._next_to_fill: dict[str, int] = {}

    def cache_progress(self, task: Task, heights: Sequence[int]) -> int | None:
        name = task.task_name

        with self._lock:
            next_to_fill = self._next_to_fill.get(name, task.start_checkpoint)
            old_next_to_fill = next_to_fill

            seen = self._seen.setdefault(name, set())
            # heights below the watermark were already accounted for
            seen.update(h for h in heights if h >= next_to_fill)
            while next_to_fill in seen:
                seen.remove(next_to_fill)
                next_to_fill += 1

            made_progress = next_to_fill != old_next_to_fill
            if made_progress:
                self._next_to_fill[name] = next_to_fill

            now = self._clock()
            last_save_time = self._last_save_time.get(name)

            if next_to_fill > task.target_checkpoint:
                self._last_save_time[name] = now
                return next_to_fill - 1

            if not made_progress:
                return None

            if last_save_time is None:
                self._last_save_time[name] = now
                return None

            if now - last_save_time >= self._duration:
                self._last_save_time[name] = now
                return next_to_fill - 1

            return None

    def buffered(self, task_name: str) -> frozenset[int]:
        """Completed heights still waiting for a gap below them to close."""
        with self._lock:
            return frozenset(self._seen.get(task_name, ()))

    def watermark(self, task_name: str) -> int | None:
        """Highest contiguously completed height, or None if nothing was filled."""
        with self._lock:
            next_to_fill = self._next_to_fill.get(task_name)
        return None if next_to_fill is None else next_to_fill - 1


def progress_saving_policy_factory(
    *,
    kind: str,
    duration: float,
    clock: Clock = time.monotonic,
) -> ProgressSavingPolicy:
    if kind == "out_of_order":
        return OutOfOrderSaveAfterDurationPolicy(duration, clock=clock)
    if kind == "after_duration":
        return SaveAfterDurationPolicy(duration, clock=clock)
    raise ValueError(f"Unsupported progress saving policy: {kind!r}")
