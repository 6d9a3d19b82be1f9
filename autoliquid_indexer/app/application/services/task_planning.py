from __future__ import annotations

import logging
import math

from autoliquid_indexer.app.domain.ports.out import IndexerProgressStore
from autoliquid_indexer.app.domain.tasks import (
    Task,
    Tasks,
    backfill_task_name,
    live_task_name,
)

logger = logging.getLogger(__name__)


def plan_ranges(start_checkpoint: int, target_checkpoint: int, parts: int) -> list[tuple[int, int]]:
    """
    Split the inclusive range [start, target] into at most `parts` contiguous ranges.

    No range is shorter than two checkpoints unless the whole range is one:
    a task whose start equals its target is already complete and would
    never be indexed.
    """
    if parts <= 0:
        raise ValueError("parts must be positive")
    if start_checkpoint > target_checkpoint:
        raise ValueError("start_checkpoint must be <= target_checkpoint")

    size = target_checkpoint - start_checkpoint + 1
    parts = min(parts, max(1, size // 2))
    step = math.ceil(size / parts)
    out: list[tuple[int, int]] = []
    b = start_checkpoint
    while b <= target_checkpoint:
        tb = min(target_checkpoint, b + step - 1)
        out.append((b, tb))
        b = tb + 1

    if len(out) > 1 and out[-1][0] == out[-1][1]:
        out[-2:] = [(out[-2][0], target_checkpoint)]
    return out


async def ensure_tasks(
    *,
    store: IndexerProgressStore,
    prefix: str,
    genesis_checkpoint: int,
    live_start_checkpoint: int,
) -> Tasks:
    """
    Make sure a live task exists for `prefix`.

    On first run (no live task) the live task starts at `live_start_checkpoint`
    and a backfill task covers everything between the furthest known
    progress (or `genesis_checkpoint`) and the live start.
    """
    tasks = Tasks(await store.get_ongoing_tasks(prefix))
    if tasks.live_task is not None:
        return tasks

    largest = await store.get_largest_indexed_checkpoint(prefix)
    backfill_from = genesis_checkpoint if largest is None else largest + 1
    live_from = max(live_start_checkpoint, backfill_from)

    # A one-checkpoint backfill would be registered as already complete
    if live_from - backfill_from >= 2:
        target = live_from - 1
        await store.register_task(backfill_task_name(prefix, target), backfill_from, target)
    else:
        live_from = backfill_from

    await store.register_live_task(live_task_name(prefix), live_from)
    logger.info(
        "Registered live task for %r at checkpoint %s (backfill from %s)",
        prefix,
        live_from,
        backfill_from,
    )
    return Tasks(await store.get_ongoing_tasks(prefix))


async def split_backfill_task(
    *,
    store: IndexerProgressStore,
    prefix: str,
    task: Task,
    parts: int,
) -> list[Task]:
    """
    Reshape an unfinished backfill task into `parts` contiguous sub-ranges.

    The existing row keeps the last sub-range (its name ends with the
    original target); the earlier sub-ranges are registered as new tasks.
    """
    if task.is_live_task:
        raise ValueError(f"Cannot split live task {task.task_name!r}")
    if not task.is_ongoing:
        raise ValueError(f"Task {task.task_name!r} is already complete")

    ranges = plan_ranges(task.start_checkpoint, task.target_checkpoint, parts)
    if len(ranges) == 1:
        return [task]

    *head, (last_start, last_target) = ranges
    reshaped = task.with_range(last_start, last_target)

    # the original row still spans every head range until it is reshaped
    new_tasks = []
    for start, target in head:
        name = backfill_task_name(prefix, target)
        await store.register_task(name, start, target)
        new_tasks.append(Task(task_name=name, start_checkpoint=start, target_checkpoint=target))
    await store.update_task(reshaped)

    logger.info("Split backfill task %r into %s ranges", task.task_name, len(new_tasks) + 1)
    return [reshaped, *new_tasks]
