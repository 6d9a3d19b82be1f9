from __future__ import annotations

import typer

from autoliquid_indexer.app.config import settings
from autoliquid_indexer.app.domain.tasks import Tasks
from autoliquid_indexer.app.infrastructure.db.engine import create_app_async_engine
from autoliquid_indexer.app.infrastructure.factories.bluefin_indexer_factory import (
    bluefin_indexer_factory,
)


async def show_ongoing_tasks_task(
    *,
    prefix: str | None = None,
    backend: str = "sqlalchemy",
) -> None:
    """Task: print unfinished tasks of the prefix and the largest indexed checkpoint."""
    prefix = prefix or settings.indexer_task_prefix
    engine = create_app_async_engine()
    try:
        store = bluefin_indexer_factory(backend=backend, engine=engine).store
        tasks = Tasks(await store.get_ongoing_tasks(prefix))
        largest = await store.get_largest_indexed_checkpoint(prefix)
    finally:
        await engine.dispose()

    typer.echo(f"Largest indexed checkpoint for {prefix!r}: {largest}")
    for task in tasks:
        target = "live" if task.is_live_task else task.target_checkpoint
        typer.echo(f"  {task.task_name}: checkpoint={task.start_checkpoint} target={target}")
