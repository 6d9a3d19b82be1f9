from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncEngine

from autoliquid_indexer.app.application.services.index_checkpoints import run_checkpoint_task
from autoliquid_indexer.app.application.services.progress_saving_policy import (
    progress_saving_policy_factory,
)
from autoliquid_indexer.app.config import settings
from autoliquid_indexer.app.domain.ports.out import (
    CheckpointSource,
    DataMapper,
    IndexerProgressStore,
    Persistent,
    SignerStore,
)
from autoliquid_indexer.app.domain.tasks import Task
from autoliquid_indexer.app.infrastructure.adapters.bluefin_persistent import (
    SqlAlchemyBluefinPersistent,
)
from autoliquid_indexer.app.infrastructure.adapters.progress_store import SqlAlchemyProgressStore
from autoliquid_indexer.app.infrastructure.mappers.bluefin_data_mapper import BluefinDataMapper
from autoliquid_indexer.app.infrastructure.metrics import IndexerMetrics, default_indexer_metrics
from autoliquid_indexer.app.infrastructure.signers.memory_signer_store import InMemorySignerStore


@dataclass(frozen=True)
class BluefinIndexerComponents:
    mapper: DataMapper
    persistent: Persistent
    store: IndexerProgressStore
    signer_store: SignerStore

    async def run_task(
        self,
        *,
        source: CheckpointSource,
        task: Task,
        concurrency: int | None = None,
    ) -> int | None:
        """Index `task` from `source` with this mapper, writer and progress store."""
        return await run_checkpoint_task(
            source=source,
            mapper=self.mapper,
            persistent=self.persistent,
            store=self.store,
            task=task,
            concurrency=concurrency or settings.concurrency,
        )


BluefinIndexerFactory = Callable[[AsyncEngine, IndexerMetrics], BluefinIndexerComponents]

_BLUEFIN_INDEXER_REGISTRY: Dict[str, BluefinIndexerFactory] = {}

_DEFAULT_POLICY = "out_of_order"


def _make_sqlalchemy_components(
    engine: AsyncEngine,
    metrics: IndexerMetrics,
    *,
    package_id: str,
    policy: str,
    save_interval_seconds: float,
) -> BluefinIndexerComponents:
    """
    Wire dependencies for SQLAlchemy backend:
    - BCS-decoding data mapper filtering by the Bluefin package id
    - idempotent writer (ON CONFLICT DO NOTHING) for position updates / error txs
    - progress store persisting the checkpoints chosen by the saving policy
    - process-local signer store for the rebalancing collaborator
    """
    saving_policy = progress_saving_policy_factory(kind=policy, duration=save_interval_seconds)
    return BluefinIndexerComponents(
        mapper=BluefinDataMapper(package_id=package_id, metrics=metrics),
        persistent=SqlAlchemyBluefinPersistent(engine),
        store=SqlAlchemyProgressStore(engine, save_progress_policy=saving_policy),
        signer_store=InMemorySignerStore(),
    )


# Register backends
_BLUEFIN_INDEXER_REGISTRY["sqlalchemy"] = lambda engine, metrics: _make_sqlalchemy_components(
    engine,
    metrics,
    package_id=settings.bluefin_package_id,
    policy=_DEFAULT_POLICY,
    save_interval_seconds=settings.progress_save_interval_seconds,
)


def bluefin_indexer_factory(
    *,
    backend: str,
    engine: AsyncEngine,
    metrics: IndexerMetrics | None = None,
) -> BluefinIndexerComponents:
    """Create the indexer components (mapper, writer, progress and signer stores) for the given backend."""
    if metrics is None:
        metrics = default_indexer_metrics()

    try:
        factory = _BLUEFIN_INDEXER_REGISTRY[backend]
    except KeyError:
        raise ValueError(f"Unsupported Bluefin indexer backend: {backend!r}")

    return factory(engine, metrics)
