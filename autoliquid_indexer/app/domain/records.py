"""
Records produced by the extractor and consumed by the writer.

`ProcessedRecord` is a plain union of two unrelated dataclasses; the writer
dispatches on the concrete type.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


def make_event_digest(tx_digest: str, event_index: int) -> str:
    """Idempotency key of an event: transaction digest followed by the event index."""
    return f"{tx_digest}{event_index}"


@dataclass(frozen=True)
class PositionUpdate:
    digest: str
    event_digest: str
    sender: str
    checkpoint: int
    checkpoint_timestamp_ms: int
    package: str
    pool_id: str
    position_id: str
    tick_lower: int
    tick_upper: int
    liquidity: int
    price: Decimal
    is_close: bool


@dataclass(frozen=True)
class TransactionError:
    tx_digest: str
    sender: str
    timestamp_ms: int
    failure_status: str
    package: str
    cmd_idx: int | None = None


ProcessedRecord = PositionUpdate | TransactionError


@dataclass(frozen=True)
class ActivePosition:
    """Latest state of an open position, as read back for the rebalancing loop."""

    position_id: str
    pool_id: str
    sender: str
    tick_lower: int
    tick_upper: int
    checkpoint: int
