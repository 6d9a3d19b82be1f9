from __future__ import annotations

import logging

from autoliquid_indexer.app.application.services.task_planning import ensure_tasks
from autoliquid_indexer.app.config import settings
from autoliquid_indexer.app.infrastructure.db.engine import create_app_async_engine
from autoliquid_indexer.app.infrastructure.factories.bluefin_indexer_factory import (
    bluefin_indexer_factory,
)

logger = logging.getLogger(__name__)


async def ensure_bluefin_tasks_task(
    *,
    live_start_checkpoint: int,
    start_checkpoint: int | None = None,
    prefix: str | None = None,
    backend: str = "sqlalchemy",
) -> None:
    """
    Task: register the live task (and a catch-up backfill) for the indexer prefix.

    Does nothing if a live task already exists.
    """
    engine = create_app_async_engine()
    try:
        components = bluefin_indexer_factory(
            backend=backend,
            engine=engine,
        )
        tasks = await ensure_tasks(
            store=components.store,
            prefix=prefix or settings.indexer_task_prefix,
            genesis_checkpoint=settings.start_checkpoint if start_checkpoint is None else start_checkpoint,
            live_start_checkpoint=live_start_checkpoint,
        )
        for task in tasks:
            logger.info(
                "Ongoing task %r: checkpoint=%s, target=%s",
                task.task_name,
                task.start_checkpoint,
                "live" if task.is_live_task else task.target_checkpoint,
            )
    finally:
        await engine.dispose()
