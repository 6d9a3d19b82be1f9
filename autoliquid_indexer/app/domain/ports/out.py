from __future__ import annotations

from typing import AsyncIterator, Protocol, Sequence

from autoliquid_indexer.app.domain.checkpoint import Checkpoint, CheckpointTxnData
from autoliquid_indexer.app.domain.events import BluefinEvent
from autoliquid_indexer.app.domain.records import ProcessedRecord
from autoliquid_indexer.app.domain.tasks import Task


class EventDecoder(Protocol):
    def decode(self, *, type_name: str, contents: bytes) -> BluefinEvent | None:
        """
        Decode a raw event payload given its Move type name.

        Return:
          - the typed event for a known type name
          - None if the type name is not one this decoder handles

        Raises EventDecodeError when a known type carries a malformed payload.
        """
        ...


class DataMapper(Protocol):
    """
    Port turning one checkpoint transaction into processed records.

    Implementations must be pure apart from metrics: the same input always
    yields the same list.
    """

    def map(
        self,
        data: CheckpointTxnData,
        *,
        index_in_checkpoint: int | None = None,
    ) -> list[ProcessedRecord]: ...


class Persistent(Protocol):
    """
    Port for persisting processed records.

    Writes must be idempotent: re-delivering the same records leaves the
    stored rows unchanged.
    """

    async def write(self, data: Sequence[ProcessedRecord]) -> None: ...


class ProgressSavingPolicy(Protocol):
    def cache_progress(self, task: Task, heights: Sequence[int]) -> int | None:
        """
        Record completed checkpoint heights for a task.

        Return the checkpoint that is safe to persist now, or None.
        """
        ...


class IndexerProgressStore(Protocol):
    """
    Port for per-task checkpoint progress.

    Rows are keyed by task name and never deleted; see Task for the meaning
    of the checkpoint columns.
    """

    async def load_progress(self, task_name: str) -> int: ...

    async def save_progress(self, task: Task, checkpoint_numbers: Sequence[int]) -> int | None: ...

    async def get_ongoing_tasks(self, prefix: str) -> list[Task]: ...

    async def get_largest_indexed_checkpoint(self, prefix: str) -> int | None: ...

    async def register_task(self, task_name: str, checkpoint: int, target_checkpoint: int) -> None: ...

    async def register_live_task(self, task_name: str, start_checkpoint: int) -> None: ...

    async def update_task(self, task: Task) -> None: ...


class CheckpointSource(Protocol):
    """
    Upstream ingestion engine boundary.

    Yields checkpoints of a task's range; ordering, fetching and retries are
    the source's business.
    """

    def checkpoints(self, task: Task) -> AsyncIterator[Checkpoint]: ...


class SignerStore(Protocol):
    """Address-keyed store of opaque signing key material."""

    def get_signer_by_address(self, address: str) -> bytes: ...

    def store_signer(self, address: str, signer: bytes) -> None: ...

    def get_all_addresses(self) -> list[str]: ...
