from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from autoliquid_indexer.app.domain.ports.out import Persistent
from autoliquid_indexer.app.domain.records import (
    PositionUpdate,
    ProcessedRecord,
    TransactionError,
)

logger = logging.getLogger(__name__)

_INSERT_POSITION_UPDATES_SQL = text(
    """
    INSERT INTO position_updates (
        digest,
        event_digest,
        sender,
        checkpoint,
        checkpoint_timestamp_ms,
        package,
        pool_id,
        position_id,
        tick_lower,
        tick_upper,
        liquidity,
        price,
        is_close
    )
    VALUES (
        :digest,
        :event_digest,
        :sender,
        :checkpoint,
        :checkpoint_timestamp_ms,
        :package,
        :pool_id,
        :position_id,
        :tick_lower,
        :tick_upper,
        :liquidity,
        :price,
        :is_close
    )
    ON CONFLICT (event_digest) DO NOTHING
    """
)

_INSERT_ERROR_TRANSACTIONS_SQL = text(
    """
    INSERT INTO sui_error_transactions (
        txn_digest,
        sender_address,
        timestamp_ms,
        failure_status,
        package,
        cmd_idx
    )
    VALUES (
        :txn_digest,
        :sender_address,
        :timestamp_ms,
        :failure_status,
        :package,
        :cmd_idx
    )
    ON CONFLICT (txn_digest) DO NOTHING
    """
)


def _position_row(p: PositionUpdate) -> dict[str, Any]:
    return {
        "digest": p.digest,
        "event_digest": p.event_digest,
        "sender": p.sender,
        "checkpoint": p.checkpoint,
        "checkpoint_timestamp_ms": p.checkpoint_timestamp_ms,
        "package": p.package,
        "pool_id": p.pool_id,
        "position_id": p.position_id,
        "tick_lower": p.tick_lower,
        "tick_upper": p.tick_upper,
        "liquidity": str(p.liquidity),
        "price": str(p.price),
        "is_close": p.is_close,
    }


def _error_row(e: TransactionError) -> dict[str, Any]:
    return {
        "txn_digest": e.tx_digest,
        "sender_address": e.sender,
        "timestamp_ms": e.timestamp_ms,
        "failure_status": e.failure_status,
        "package": e.package,
        "cmd_idx": e.cmd_idx,
    }


def partition_records(
    data: Sequence[ProcessedRecord],
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Split records into (positions, errors) rows, keeping relative order."""
    positions: list[dict[str, Any]] = []
    errors: list[dict[str, Any]] = []
    for record in data:
        if isinstance(record, PositionUpdate):
            positions.append(_position_row(record))
        elif isinstance(record, TransactionError):
            errors.append(_error_row(record))
        else:
            raise TypeError(f"Unsupported processed record: {type(record).__name__}")
    return positions, errors


class SqlAlchemyBluefinPersistent(Persistent):
    """
    Writer adapter: persists processed Bluefin records.

    Strategy:
    - partition records into position updates and error transactions,
    - insert both batches inside one transaction (engine.begin()),
    - ON CONFLICT DO NOTHING on the idempotency keys, so redelivered
      checkpoints neither fail nor overwrite rows.

    Any database error rolls back both batches and propagates.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def write(self, data: Sequence[ProcessedRecord]) -> None:
        if not data:
            logger.info("No data to write.")
            return

        positions, errors = partition_records(data)

        # Both batches share the transaction's connection, which runs one
        # statement at a time.
        async with self._engine.begin() as conn:
            if errors:
                await conn.execute(_INSERT_ERROR_TRANSACTIONS_SQL, errors)
            if positions:
                await conn.execute(_INSERT_POSITION_UPDATES_SQL, positions)

        logger.info(
            "Persisted bluefin batch: positions=%s, error_transactions=%s",
            len(positions),
            len(errors),
        )
