from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import Row, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from autoliquid_indexer.app.domain.errors import DuplicateTaskError, TaskNotFoundError
from autoliquid_indexer.app.domain.ports.out import IndexerProgressStore, ProgressSavingPolicy
from autoliquid_indexer.app.domain.tasks import (
    LIVE_TASK_TARGET_CHECKPOINT,
    Task,
    task_name_pattern,
)
from autoliquid_indexer.app.infrastructure.db.models.progress_store import ProgressStoreDB

logger = logging.getLogger(__name__)

_LIKE_ESCAPE = "\\"

_REGISTER_TASK_SQL = text(
    """
    INSERT INTO progress_store (task_name, checkpoint, target_checkpoint)
    VALUES (:task_name, :checkpoint, :target_checkpoint)
    """
)

# target_checkpoint only matters for new rows; an existing task keeps its range
_SAVE_PROGRESS_SQL = text(
    """
    INSERT INTO progress_store (task_name, checkpoint, target_checkpoint)
    VALUES (:task_name, :checkpoint, :target_checkpoint)
    ON CONFLICT (task_name) DO UPDATE SET
        checkpoint = EXCLUDED.checkpoint,
        timestamp = CURRENT_TIMESTAMP
    """
)

_UPDATE_TASK_SQL = text(
    """
    UPDATE progress_store
    SET checkpoint = :checkpoint,
        target_checkpoint = :target_checkpoint,
        timestamp = CURRENT_TIMESTAMP
    WHERE task_name = :task_name
    """
)


def _to_task(row: Row[Any]) -> Task:
    return Task(
        task_name=row.task_name,
        start_checkpoint=row.checkpoint,
        target_checkpoint=row.target_checkpoint,
        timestamp=row.timestamp,
    )


class SqlAlchemyProgressStore(IndexerProgressStore):
    """
    Progress store adapter backed by the progress_store table.

    Which checkpoint gets persisted on save_progress is decided by the
    injected ProgressSavingPolicy; this class only does the I/O.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        save_progress_policy: ProgressSavingPolicy,
    ) -> None:
        self._engine = engine
        self._policy = save_progress_policy

    async def load_progress(self, task_name: str) -> int:
        stmt = select(ProgressStoreDB.checkpoint).where(ProgressStoreDB.task_name == task_name)
        async with self._engine.connect() as conn:
            checkpoint = (await conn.execute(stmt)).scalar_one_or_none()

        if checkpoint is None:
            raise TaskNotFoundError("Cannot find progress for task", {"task_name": task_name})
        return checkpoint

    async def save_progress(self, task: Task, checkpoint_numbers: Sequence[int]) -> int | None:
        if not checkpoint_numbers:
            return None

        checkpoint_to_save = self._policy.cache_progress(task, checkpoint_numbers)
        if checkpoint_to_save is None:
            return None

        async with self._engine.begin() as conn:
            await conn.execute(
                _SAVE_PROGRESS_SQL,
                {
                    "task_name": task.task_name,
                    "checkpoint": checkpoint_to_save,
                    "target_checkpoint": LIVE_TASK_TARGET_CHECKPOINT,
                },
            )

        logger.info("Saved progress: task=%r, checkpoint=%s", task.task_name, checkpoint_to_save)
        return checkpoint_to_save

    async def get_ongoing_tasks(self, prefix: str) -> list[Task]:
        stmt = (
            select(ProgressStoreDB)
            .where(ProgressStoreDB.task_name.like(task_name_pattern(prefix), escape=_LIKE_ESCAPE))
            .where(ProgressStoreDB.checkpoint < ProgressStoreDB.target_checkpoint)
            .order_by(ProgressStoreDB.target_checkpoint.desc())
        )
        async with self._engine.connect() as conn:
            rows = (await conn.execute(stmt)).all()

        return [_to_task(r) for r in rows]

    async def get_largest_indexed_checkpoint(self, prefix: str) -> int | None:
        stmt = (
            select(ProgressStoreDB.checkpoint)
            .where(ProgressStoreDB.task_name.like(task_name_pattern(prefix), escape=_LIKE_ESCAPE))
            .where(ProgressStoreDB.target_checkpoint == LIVE_TASK_TARGET_CHECKPOINT)
            .limit(1)
        )
        async with self._engine.connect() as conn:
            checkpoint = (await conn.execute(stmt)).scalar_one_or_none()

        if checkpoint is not None:
            return checkpoint

        # No live task yet: the furthest backfill target is the best known bound
        return await self.get_largest_backfill_task_target_checkpoint(prefix)

    async def get_largest_backfill_task_target_checkpoint(self, prefix: str) -> int | None:
        stmt = (
            select(ProgressStoreDB.target_checkpoint)
            .where(ProgressStoreDB.task_name.like(task_name_pattern(prefix), escape=_LIKE_ESCAPE))
            .where(ProgressStoreDB.target_checkpoint != LIVE_TASK_TARGET_CHECKPOINT)
            .order_by(ProgressStoreDB.target_checkpoint.desc())
            .limit(1)
        )
        async with self._engine.connect() as conn:
            return (await conn.execute(stmt)).scalar_one_or_none()

    async def register_task(self, task_name: str, checkpoint: int, target_checkpoint: int) -> None:
        if checkpoint < 0 or target_checkpoint < 0:
            raise ValueError("Checkpoint numbers must be non-negative")
        if checkpoint > target_checkpoint:
            raise ValueError("checkpoint must be <= target_checkpoint")

        try:
            async with self._engine.begin() as conn:
                await conn.execute(
                    _REGISTER_TASK_SQL,
                    {
                        "task_name": task_name,
                        "checkpoint": checkpoint,
                        "target_checkpoint": target_checkpoint,
                    },
                )
        except IntegrityError as exc:
            raise DuplicateTaskError(
                "Task is already registered",
                {"task_name": task_name},
            ) from exc

        logger.info(
            "Registered task: task=%r, checkpoint=%s, target_checkpoint=%s",
            task_name,
            checkpoint,
            target_checkpoint,
        )

    async def register_live_task(self, task_name: str, start_checkpoint: int) -> None:
        await self.register_task(task_name, start_checkpoint, LIVE_TASK_TARGET_CHECKPOINT)

    async def update_task(self, task: Task) -> None:
        async with self._engine.begin() as conn:
            result = await conn.execute(
                _UPDATE_TASK_SQL,
                {
                    "task_name": task.task_name,
                    "checkpoint": task.start_checkpoint,
                    "target_checkpoint": task.target_checkpoint,
                },
            )

        if result.rowcount == 0:
            raise TaskNotFoundError("Cannot update unregistered task", {"task_name": task.task_name})

        logger.info(
            "Updated task: task=%r, checkpoint=%s, target_checkpoint=%s",
            task.task_name,
            task.start_checkpoint,
            task.target_checkpoint,
        )
