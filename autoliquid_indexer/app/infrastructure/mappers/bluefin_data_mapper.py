from __future__ import annotations

import logging
from decimal import Decimal

from autoliquid_indexer.app.domain.checkpoint import (
    CheckpointTransaction,
    CheckpointTxnData,
    Event,
    normalize_sui_address,
)
from autoliquid_indexer.app.domain.events import (
    POSITION_CLOSED_EVENT,
    POSITION_OPENED_EVENT,
    PositionClosed,
    PositionOpened,
)
from autoliquid_indexer.app.domain.ports.out import DataMapper, EventDecoder
from autoliquid_indexer.app.domain.records import (
    PositionUpdate,
    ProcessedRecord,
    TransactionError,
    make_event_digest,
)
from autoliquid_indexer.app.infrastructure.decoders.bluefin.event_decoder import (
    BluefinEventDecoder,
)
from autoliquid_indexer.app.infrastructure.metrics import IndexerMetrics

logger = logging.getLogger(__name__)


class BluefinDataMapper(DataMapper):
    """
    Extracts Bluefin position records from checkpoint transactions.

    Strategy:
    - skip transactions that do not touch an object typed by the package,
    - map PositionOpened / PositionClosed events emitted by the package,
    - for a failed transaction without events, record the failure.

    Liquidity and price are not carried by open/close events and are stored
    as zero until liquidity events are projected.
    """

    def __init__(
        self,
        *,
        package_id: str,
        metrics: IndexerMetrics,
        decoder: EventDecoder | None = None,
    ) -> None:
        self._package_id = normalize_sui_address(package_id)
        self._metrics = metrics
        self._decoder = decoder or BluefinEventDecoder.for_types(
            POSITION_OPENED_EVENT,
            POSITION_CLOSED_EVENT,
        )

    @property
    def package_id(self) -> str:
        return self._package_id

    def map(
        self,
        data: CheckpointTxnData,
        *,
        index_in_checkpoint: int | None = None,
    ) -> list[ProcessedRecord]:
        tx, checkpoint_num, timestamp_ms = data
        return self.extract(
            tx,
            checkpoint_number=checkpoint_num,
            checkpoint_timestamp_ms=timestamp_ms,
            index_in_checkpoint=index_in_checkpoint,
        )

    def extract(
        self,
        tx: CheckpointTransaction,
        *,
        checkpoint_number: int,
        checkpoint_timestamp_ms: int,
        index_in_checkpoint: int | None = None,
    ) -> list[ProcessedRecord]:
        if not self._touches_package(tx):
            return []

        self._metrics.total_transactions.inc()

        if tx.events is None:
            return self._failure_records(tx, checkpoint_timestamp_ms)

        records: list[ProcessedRecord] = []
        for event_index, event in enumerate(tx.events):
            record = self._process_event(
                event,
                event_index=event_index,
                tx=tx,
                checkpoint=checkpoint_number,
                checkpoint_timestamp_ms=checkpoint_timestamp_ms,
            )
            if record is not None:
                records.append(record)

        if records:
            logger.info(
                "Extracted %s bluefin entries for tx %s (checkpoint=%s, tx_index=%s)",
                len(records),
                tx.digest,
                checkpoint_number,
                index_in_checkpoint,
            )
        return records

    # ---------------------------------------------------------------------
    # helpers
    # ---------------------------------------------------------------------

    def _touches_package(self, tx: CheckpointTransaction) -> bool:
        for obj in tx.input_objects:
            if obj.type_address is None:
                continue
            if normalize_sui_address(obj.type_address) == self._package_id:
                return True
        return False

    def _failure_records(
        self,
        tx: CheckpointTransaction,
        timestamp_ms: int,
    ) -> list[ProcessedRecord]:
        if tx.status.success:
            return []

        return [
            TransactionError(
                tx_digest=tx.digest,
                sender=normalize_sui_address(tx.sender),
                timestamp_ms=timestamp_ms,
                failure_status=tx.status.error or "",
                package=tx.first_move_call_package(),
                cmd_idx=tx.status.command,
            )
        ]

    def _process_event(
        self,
        event: Event,
        *,
        event_index: int,
        tx: CheckpointTransaction,
        checkpoint: int,
        checkpoint_timestamp_ms: int,
    ) -> PositionUpdate | None:
        if normalize_sui_address(event.type_.address) != self._package_id:
            return None

        decoded = self._decoder.decode(type_name=event.type_.name, contents=event.contents)
        if not isinstance(decoded, (PositionOpened, PositionClosed)):
            logger.debug("Not supported event %s in tx %s", event.type_.name, tx.digest)
            return None

        logger.debug("Handle %s event in tx %s: %s", event.type_.name, tx.digest, decoded)
        return PositionUpdate(
            digest=tx.digest,
            event_digest=make_event_digest(tx.digest, event_index),
            sender=normalize_sui_address(tx.sender),
            checkpoint=checkpoint,
            checkpoint_timestamp_ms=checkpoint_timestamp_ms,
            package=tx.first_move_call_package(),
            pool_id=decoded.pool_id,
            position_id=decoded.position_id,
            tick_lower=decoded.tick_lower,
            tick_upper=decoded.tick_upper,
            liquidity=0,
            price=Decimal(0),
            is_close=isinstance(decoded, PositionClosed),
        )
