"""
Unit tests for task planning (live task bootstrap and backfill splitting)
"""

from typing import Sequence

import pytest

from autoliquid_indexer.app.application.services.task_planning import (
    ensure_tasks,
    plan_ranges,
    split_backfill_task,
)
from autoliquid_indexer.app.domain.errors import DuplicateTaskError, TaskNotFoundError
from autoliquid_indexer.app.domain.tasks import LIVE_TASK_TARGET_CHECKPOINT, Task

PREFIX = "BluefinIndexer"


class InMemoryProgressStore:
    """Progress store fake keeping rows in a dict"""

    def __init__(self, rows: dict[str, tuple[int, int]] | None = None) -> None:
        self.rows: dict[str, tuple[int, int]] = dict(rows or {})

    async def load_progress(self, task_name: str) -> int:
        try:
            return self.rows[task_name][0]
        except KeyError:
            raise TaskNotFoundError("Cannot find progress for task", {"task_name": task_name})

    async def save_progress(self, task: Task, checkpoint_numbers: Sequence[int]) -> int | None:
        raise NotImplementedError

    async def get_ongoing_tasks(self, prefix: str) -> list[Task]:
        tasks = [
            Task(task_name=name, start_checkpoint=cp, target_checkpoint=target)
            for name, (cp, target) in self.rows.items()
            if name.startswith(f"{prefix} - ") and cp < target
        ]
        return sorted(tasks, key=lambda t: t.target_checkpoint, reverse=True)

    async def get_largest_indexed_checkpoint(self, prefix: str) -> int | None:
        owned = {n: v for n, v in self.rows.items() if n.startswith(f"{prefix} - ")}
        for cp, target in owned.values():
            if target == LIVE_TASK_TARGET_CHECKPOINT:
                return cp
        targets = [target for _, target in owned.values()]
        return max(targets) if targets else None

    async def register_task(self, task_name: str, checkpoint: int, target_checkpoint: int) -> None:
        if task_name in self.rows:
            raise DuplicateTaskError("Task is already registered", {"task_name": task_name})
        self.rows[task_name] = (checkpoint, target_checkpoint)

    async def register_live_task(self, task_name: str, start_checkpoint: int) -> None:
        await self.register_task(task_name, start_checkpoint, LIVE_TASK_TARGET_CHECKPOINT)

    async def update_task(self, task: Task) -> None:
        if task.task_name not in self.rows:
            raise TaskNotFoundError("Cannot update unregistered task", {"task_name": task.task_name})
        self.rows[task.task_name] = (task.start_checkpoint, task.target_checkpoint)


class TestPlanRanges:
    def test_even_split(self):
        assert plan_ranges(0, 99, 4) == [(0, 24), (25, 49), (50, 74), (75, 99)]

    def test_uneven_split_covers_range(self):
        ranges = plan_ranges(10, 20, 3)

        assert ranges == [(10, 13), (14, 17), (18, 20)]

    def test_more_parts_than_checkpoints(self):
        assert plan_ranges(5, 6, 10) == [(5, 6)]

    def test_trailing_single_checkpoint_is_merged(self):
        assert plan_ranges(0, 6, 3) == [(0, 2), (3, 6)]

    def test_single_checkpoint_range(self):
        assert plan_ranges(4, 4, 3) == [(4, 4)]

    @pytest.mark.parametrize("start, target", [(0, 6), (0, 2), (10, 20), (3, 100)])
    @pytest.mark.parametrize("parts", [2, 3, 7, 50])
    def test_no_range_shorter_than_two(self, start, target, parts):
        ranges = plan_ranges(start, target, parts)

        assert all(t > s for s, t in ranges)
        assert ranges[0][0] == start and ranges[-1][1] == target
        assert all(nxt[0] == prev[1] + 1 for prev, nxt in zip(ranges, ranges[1:]))

    def test_single_part(self):
        assert plan_ranges(3, 9, 1) == [(3, 9)]

    @pytest.mark.parametrize("start, target, parts", [(0, 10, 0), (10, 0, 2)])
    def test_invalid_arguments(self, start, target, parts):
        with pytest.raises(ValueError):
            plan_ranges(start, target, parts)


class TestEnsureTasks:
    """Bootstrap of the live task"""

    @pytest.mark.asyncio
    async def test_first_run_registers_live_and_backfill(self):
        store = InMemoryProgressStore()

        tasks = await ensure_tasks(
            store=store,
            prefix=PREFIX,
            genesis_checkpoint=0,
            live_start_checkpoint=1_000,
        )

        assert store.rows == {
            "BluefinIndexer - backfill - 999": (0, 999),
            "BluefinIndexer - Live": (1_000, LIVE_TASK_TARGET_CHECKPOINT),
        }
        assert tasks.live_task.start_checkpoint == 1_000
        assert [t.task_name for t in tasks.backfill_tasks_ordered_desc()] == [
            "BluefinIndexer - backfill - 999"
        ]

    @pytest.mark.asyncio
    async def test_existing_live_task_is_kept(self):
        store = InMemoryProgressStore({"BluefinIndexer - Live": (42, LIVE_TASK_TARGET_CHECKPOINT)})

        tasks = await ensure_tasks(
            store=store,
            prefix=PREFIX,
            genesis_checkpoint=0,
            live_start_checkpoint=1_000,
        )

        assert tasks.live_task.start_checkpoint == 42
        assert len(store.rows) == 1

    @pytest.mark.asyncio
    async def test_resumes_after_largest_backfill_target(self):
        store = InMemoryProgressStore({"BluefinIndexer - backfill - 500": (500, 500)})

        await ensure_tasks(
            store=store,
            prefix=PREFIX,
            genesis_checkpoint=0,
            live_start_checkpoint=800,
        )

        assert store.rows["BluefinIndexer - backfill - 799"] == (501, 799)
        assert store.rows["BluefinIndexer - Live"] == (800, LIVE_TASK_TARGET_CHECKPOINT)

    @pytest.mark.asyncio
    async def test_no_backfill_when_live_start_is_behind(self):
        store = InMemoryProgressStore({"BluefinIndexer - backfill - 500": (500, 500)})

        await ensure_tasks(
            store=store,
            prefix=PREFIX,
            genesis_checkpoint=0,
            live_start_checkpoint=100,
        )

        assert store.rows["BluefinIndexer - Live"] == (501, LIVE_TASK_TARGET_CHECKPOINT)
        assert len(store.rows) == 2

    @pytest.mark.asyncio
    async def test_no_one_checkpoint_backfill(self):
        store = InMemoryProgressStore()

        await ensure_tasks(
            store=store,
            prefix=PREFIX,
            genesis_checkpoint=10,
            live_start_checkpoint=11,
        )

        assert store.rows == {"BluefinIndexer - Live": (10, LIVE_TASK_TARGET_CHECKPOINT)}

    @pytest.mark.asyncio
    async def test_other_prefix_is_ignored(self):
        store = InMemoryProgressStore({"Other - Live": (7, LIVE_TASK_TARGET_CHECKPOINT)})

        tasks = await ensure_tasks(
            store=store,
            prefix=PREFIX,
            genesis_checkpoint=0,
            live_start_checkpoint=0,
        )

        assert tasks.live_task.task_name == "BluefinIndexer - Live"


class TestSplitBackfillTask:
    """Reshaping a backfill range"""

    @pytest.mark.asyncio
    async def test_split_into_parts(self):
        store = InMemoryProgressStore({"BluefinIndexer - backfill - 99": (0, 99)})
        task = (await store.get_ongoing_tasks(PREFIX))[0]

        tasks = await split_backfill_task(store=store, prefix=PREFIX, task=task, parts=4)

        assert store.rows == {
            "BluefinIndexer - backfill - 99": (75, 99),
            "BluefinIndexer - backfill - 24": (0, 24),
            "BluefinIndexer - backfill - 49": (25, 49),
            "BluefinIndexer - backfill - 74": (50, 74),
        }
        assert [t.task_name for t in tasks] == [
            "BluefinIndexer - backfill - 99",
            "BluefinIndexer - backfill - 24",
            "BluefinIndexer - backfill - 49",
            "BluefinIndexer - backfill - 74",
        ]

    @pytest.mark.asyncio
    async def test_single_part_is_a_no_op(self):
        store = InMemoryProgressStore({"BluefinIndexer - backfill - 99": (0, 99)})
        task = (await store.get_ongoing_tasks(PREFIX))[0]

        tasks = await split_backfill_task(store=store, prefix=PREFIX, task=task, parts=1)

        assert tasks == [task]
        assert store.rows == {"BluefinIndexer - backfill - 99": (0, 99)}

    @pytest.mark.asyncio
    async def test_live_task_cannot_be_split(self):
        store = InMemoryProgressStore()
        task = Task("BluefinIndexer - Live", 0, LIVE_TASK_TARGET_CHECKPOINT)

        with pytest.raises(ValueError):
            await split_backfill_task(store=store, prefix=PREFIX, task=task, parts=2)

    @pytest.mark.asyncio
    async def test_completed_task_cannot_be_split(self):
        store = InMemoryProgressStore()
        task = Task("BluefinIndexer - backfill - 9", 9, 9)

        with pytest.raises(ValueError):
            await split_backfill_task(store=store, prefix=PREFIX, task=task, parts=2)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("target, parts", [(6, 3), (6, 10), (1, 2), (20, 7)])
    async def test_ongoing_ranges_still_cover_the_task(self, target, parts):
        name = f"BluefinIndexer - backfill - {target}"
        store = InMemoryProgressStore({name: (0, target)})
        task = (await store.get_ongoing_tasks(PREFIX))[0]

        await split_backfill_task(store=store, prefix=PREFIX, task=task, parts=parts)

        covered = set()
        for t in await store.get_ongoing_tasks(PREFIX):
            covered.update(range(t.start_checkpoint, t.target_checkpoint + 1))
        assert covered == set(range(0, target + 1))

    @pytest.mark.asyncio
    async def test_failed_registration_keeps_original_range(self):
        class FailingRegisterStore(InMemoryProgressStore):
            async def register_task(self, task_name, checkpoint, target_checkpoint):
                if self.rows:
                    raise ConnectionError("database went away")
                await super().register_task(task_name, checkpoint, target_checkpoint)

        store = FailingRegisterStore({"BluefinIndexer - backfill - 99": (0, 99)})
        task = (await store.get_ongoing_tasks(PREFIX))[0]

        with pytest.raises(ConnectionError):
            await split_backfill_task(store=store, prefix=PREFIX, task=task, parts=4)

        assert store.rows == {"BluefinIndexer - backfill - 99": (0, 99)}
