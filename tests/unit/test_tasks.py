"""
Unit tests for task domain types
"""

import pytest

from autoliquid_indexer.app.domain.errors import IndexerError, InvalidTaskSetError
from autoliquid_indexer.app.domain.tasks import (
    LIVE_TASK_TARGET_CHECKPOINT,
    Task,
    Tasks,
    backfill_task_name,
    live_task_name,
    task_name_pattern,
)


def _task(name: str, start: int, target: int) -> Task:
    return Task(task_name=name, start_checkpoint=start, target_checkpoint=target)


class TestTaskNames:
    def test_live_and_backfill_names(self):
        assert live_task_name("BluefinIndexer") == "BluefinIndexer - Live"
        assert backfill_task_name("BluefinIndexer", 1000) == "BluefinIndexer - backfill - 1000"

    def test_pattern_escapes_like_wildcards(self):
        assert task_name_pattern("Bluefin") == "Bluefin - %"
        assert task_name_pattern("a_b%c") == "a\\_b\\%c - %"

    def test_live_target_is_largest_bigint(self):
        assert LIVE_TASK_TARGET_CHECKPOINT == 9_223_372_036_854_775_807


class TestTask:
    def test_live_task(self):
        task = _task("p - Live", 10, LIVE_TASK_TARGET_CHECKPOINT)
        assert task.is_live_task
        assert task.is_ongoing

    def test_completed_backfill(self):
        task = _task("p - backfill - 10", 10, 10)
        assert not task.is_live_task
        assert not task.is_ongoing

    def test_with_range_keeps_name(self):
        task = _task("p - backfill - 10", 0, 10).with_range(5, 10)
        assert (task.task_name, task.start_checkpoint, task.target_checkpoint) == (
            "p - backfill - 10",
            5,
            10,
        )


class TestTasks:
    """Partitioning of ongoing tasks"""

    def test_partitions_live_and_backfill(self):
        live = _task("p - Live", 500, LIVE_TASK_TARGET_CHECKPOINT)
        older = _task("p - backfill - 99", 10, 99)
        newer = _task("p - backfill - 499", 200, 499)

        tasks = Tasks([older, live, newer])

        assert tasks.live_task == live
        assert tasks.backfill_tasks_ordered_desc() == [newer, older]
        assert list(tasks) == [live, newer, older]
        assert len(tasks) == 3

    def test_no_live_task(self):
        tasks = Tasks([_task("p - backfill - 9", 0, 9)])

        assert tasks.live_task is None
        assert len(tasks) == 1

    def test_empty(self):
        tasks = Tasks([])
        assert tasks.live_task is None
        assert list(tasks) == []

    def test_more_than_one_live_task_is_rejected(self):
        with pytest.raises(InvalidTaskSetError) as exc_info:
            Tasks(
                [
                    _task("p - Live", 1, LIVE_TASK_TARGET_CHECKPOINT),
                    _task("q - Live", 2, LIVE_TASK_TARGET_CHECKPOINT),
                ]
            )

        assert isinstance(exc_info.value, IndexerError)
        assert exc_info.value.context["tasks"] == ["p - Live", "q - Live"]
