from __future__ import annotations

from autoliquid_indexer.app.application.services.task_planning import split_backfill_task
from autoliquid_indexer.app.config import settings
from autoliquid_indexer.app.infrastructure.db.engine import create_app_async_engine
from autoliquid_indexer.app.infrastructure.factories.bluefin_indexer_factory import (
    bluefin_indexer_factory,
)


async def split_backfill_task_task(
    *,
    task_name: str,
    parts: int,
    prefix: str | None = None,
    backend: str = "sqlalchemy",
) -> None:
    """Task: split an unfinished backfill task into `parts` ranges for parallel workers."""
    prefix = prefix or settings.indexer_task_prefix
    engine = create_app_async_engine()
    try:
        store = bluefin_indexer_factory(backend=backend, engine=engine).store
        ongoing = {t.task_name: t for t in await store.get_ongoing_tasks(prefix)}
        try:
            task = ongoing[task_name]
        except KeyError:
            raise ValueError(f"No ongoing task named {task_name!r} under prefix {prefix!r}")

        await split_backfill_task(store=store, prefix=prefix, task=task, parts=parts)
    finally:
        await engine.dispose()
