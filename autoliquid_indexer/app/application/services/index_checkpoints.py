from __future__ import annotations

import asyncio
import logging

from autoliquid_indexer.app.domain.checkpoint import Checkpoint
from autoliquid_indexer.app.domain.ports.out import (
    CheckpointSource,
    DataMapper,
    IndexerProgressStore,
    Persistent,
)
from autoliquid_indexer.app.domain.records import ProcessedRecord
from autoliquid_indexer.app.domain.tasks import Task

logger = logging.getLogger(__name__)


async def index_checkpoint(
    *,
    mapper: DataMapper,
    persistent: Persistent,
    checkpoint: Checkpoint,
) -> int:
    """Map every transaction of a checkpoint and persist the records in one batch."""
    records: list[ProcessedRecord] = []
    for idx, tx in enumerate(checkpoint.transactions):
        records.extend(
            mapper.map(
                (tx, checkpoint.sequence_number, checkpoint.timestamp_ms),
                index_in_checkpoint=idx,
            )
        )

    if records:
        await persistent.write(records)
    return len(records)


async def run_checkpoint_task(
    *,
    source: CheckpointSource,
    mapper: DataMapper,
    persistent: Persistent,
    store: IndexerProgressStore,
    task: Task,
    concurrency: int,
) -> int | None:
    """
    Index the checkpoints yielded by `source` for `task`.

    Up to `concurrency` checkpoints are processed at once, so they may finish
    out of order; each completion is reported to the progress store, whose
    saving policy decides what is safe to persist. The first failing
    checkpoint cancels the remaining workers and is re-raised; its height is
    never reported, so progress cannot move past it.

    Returns the last checkpoint persisted as progress, if any.
    """
    if concurrency <= 0:
        raise ValueError("concurrency must be positive")

    semaphore = asyncio.Semaphore(concurrency)
    # saves are serialized so a lower checkpoint is never written after a higher one
    progress_lock = asyncio.Lock()
    workers: set[asyncio.Task[None]] = set()
    last_saved: int | None = None

    async def _process(checkpoint: Checkpoint) -> None:
        nonlocal last_saved
        try:
            count = await index_checkpoint(mapper=mapper, persistent=persistent, checkpoint=checkpoint)
            logger.debug(
                "Checkpoint %s processed: task=%r, records=%s",
                checkpoint.sequence_number,
                task.task_name,
                count,
            )
            async with progress_lock:
                saved = await store.save_progress(task, [checkpoint.sequence_number])
            if saved is not None and (last_saved is None or saved > last_saved):
                last_saved = saved
        finally:
            semaphore.release()

    logger.info(
        "Starting checkpoint task %r: checkpoints=[%s, %s], concurrency=%s",
        task.task_name,
        task.start_checkpoint,
        "live" if task.is_live_task else task.target_checkpoint,
        concurrency,
    )

    consumer = asyncio.current_task()
    failures: list[BaseException] = []
    interruptible = True

    def _on_worker_done(worker: asyncio.Task[None]) -> None:
        workers.discard(worker)
        if worker.cancelled() or worker.exception() is None or failures:
            return
        failures.append(worker.exception())  # type: ignore[arg-type]
        if interruptible and consumer is not None:
            # wakes the consumer even while the source has nothing to yield
            consumer.cancel()

    try:
        try:
            async for checkpoint in source.checkpoints(task):
                if checkpoint.sequence_number > task.target_checkpoint:
                    break
                await semaphore.acquire()
                worker = asyncio.create_task(_process(checkpoint))
                workers.add(worker)
                worker.add_done_callback(_on_worker_done)
        except asyncio.CancelledError:
            if not failures or consumer is None:
                raise
            consumer.uncancel()
            raise failures[0] from None

        interruptible = False
        await asyncio.gather(*workers)
    except BaseException:
        interruptible = False
        pending = list(workers)
        for worker in pending:
            worker.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        raise

    logger.info("Finished checkpoint task %r: last_saved=%s", task.task_name, last_saved)
    return last_saved
