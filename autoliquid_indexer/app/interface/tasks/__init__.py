from __future__ import annotations

from collections.abc import Awaitable, Callable

from .bluefin.active_positions_task import active_positions_task as bluefin__active_positions_task
from .bluefin.ensure_tasks_task import ensure_bluefin_tasks_task as bluefin__ensure_tasks_task
from .bluefin.show_ongoing_tasks_task import show_ongoing_tasks_task as bluefin__show_ongoing_tasks_task
from .bluefin.split_backfill_task import split_backfill_task_task as bluefin__split_backfill_task

TaskFn = Callable[..., Awaitable[None]]

TASKS: dict[str, TaskFn] = {
    "bluefin__ensure_tasks": bluefin__ensure_tasks_task,
    "bluefin__show_ongoing_tasks": bluefin__show_ongoing_tasks_task,
    "bluefin__active_positions": bluefin__active_positions_task,
    "bluefin__split_backfill_task": bluefin__split_backfill_task,
}
