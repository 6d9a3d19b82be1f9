from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Iterator

from autoliquid_indexer.app.domain.errors import InvalidTaskSetError

# Stored as BIGINT, so the largest signed 64-bit value marks an unbounded target.
LIVE_TASK_TARGET_CHECKPOINT: int = 2**63 - 1


def live_task_name(prefix: str) -> str:
    return f"{prefix} - Live"


def backfill_task_name(prefix: str, target_checkpoint: int) -> str:
    return f"{prefix} - backfill - {target_checkpoint}"


def task_name_pattern(prefix: str) -> str:
    """LIKE pattern matching every task registered under `prefix`."""
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped} - %"


@dataclass(frozen=True)
class Task:
    """
    One row of the progress store.

    `start_checkpoint` is the last checkpoint recorded as processed (the
    `checkpoint` column); `target_checkpoint` is the upper bound of the range,
    or LIVE_TASK_TARGET_CHECKPOINT for the live tail.
    """

    task_name: str
    start_checkpoint: int
    target_checkpoint: int
    timestamp: datetime | None = None

    @property
    def is_live_task(self) -> bool:
        return self.target_checkpoint == LIVE_TASK_TARGET_CHECKPOINT

    @property
    def is_ongoing(self) -> bool:
        return self.start_checkpoint < self.target_checkpoint

    def with_range(self, start_checkpoint: int, target_checkpoint: int) -> "Task":
        return replace(self, start_checkpoint=start_checkpoint, target_checkpoint=target_checkpoint)


class Tasks:
    """Ongoing tasks of one prefix: at most one live task plus backfills."""

    def __init__(self, tasks: Iterable[Task]) -> None:
        live: list[Task] = []
        backfill: list[Task] = []
        for task in tasks:
            (live if task.is_live_task else backfill).append(task)

        if len(live) > 1:
            raise InvalidTaskSetError(
                "More than one live task found",
                {"tasks": [t.task_name for t in live]},
            )

        backfill.sort(key=lambda t: t.start_checkpoint, reverse=True)
        self._live_task = live[0] if live else None
        self._backfill_tasks = backfill

    @property
    def live_task(self) -> Task | None:
        return self._live_task

    def backfill_tasks_ordered_desc(self) -> list[Task]:
        return list(self._backfill_tasks)

    def __iter__(self) -> Iterator[Task]:
        if self._live_task is not None:
            yield self._live_task
        yield from self._backfill_tasks

    def __len__(self) -> int:
        return len(self._backfill_tasks) + (1 if self._live_task is not None else 0)
