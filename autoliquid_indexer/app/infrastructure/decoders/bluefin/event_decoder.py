from __future__ import annotations

from typing import Callable, Mapping

from autoliquid_indexer.app.domain.events import (
    LIQUIDITY_PROVIDED_EVENT,
    LIQUIDITY_REMOVED_EVENT,
    POSITION_CLOSED_EVENT,
    POSITION_OPENED_EVENT,
    BluefinEvent,
    LiquidityProvided,
    LiquidityRemoved,
    PositionClosed,
    PositionOpened,
)
from autoliquid_indexer.app.domain.ports.out import EventDecoder
from autoliquid_indexer.app.infrastructure.decoders.bluefin.bcs import BcsReader

_EventReader = Callable[[BcsReader], BluefinEvent]


def _read_position_opened(r: BcsReader) -> PositionOpened:
    return PositionOpened(
        pool_id=r.read_address(),
        position_id=r.read_address(),
        tick_lower=r.read_i32(),
        tick_upper=r.read_i32(),
    )


def _read_position_closed(r: BcsReader) -> PositionClosed:
    return PositionClosed(
        pool_id=r.read_address(),
        position_id=r.read_address(),
        tick_lower=r.read_i32(),
        tick_upper=r.read_i32(),
    )


def _liquidity_fields(r: BcsReader) -> dict[str, int | str]:
    return {
        "pool_id": r.read_address(),
        "position_id": r.read_address(),
        "coin_a_amount": r.read_u64(),
        "coin_b_amount": r.read_u64(),
        "pool_coin_a_amount": r.read_u64(),
        "pool_coin_b_amount": r.read_u64(),
        "liquidity": r.read_u128(),
        "before_liquidity": r.read_u128(),
        "after_liquidity": r.read_u128(),
        "current_sqrt_price": r.read_u128(),
        "current_tick_index": r.read_i32(),
        "low_tick": r.read_i32(),
        "upper_tick": r.read_i32(),
        "sequence_number": r.read_u128(),
    }


def _read_liquidity_provided(r: BcsReader) -> LiquidityProvided:
    return LiquidityProvided(**_liquidity_fields(r))  # type: ignore[arg-type]


def _read_liquidity_removed(r: BcsReader) -> LiquidityRemoved:
    return LiquidityRemoved(**_liquidity_fields(r))  # type: ignore[arg-type]


DEFAULT_EVENT_READERS: Mapping[str, _EventReader] = {
    POSITION_OPENED_EVENT: _read_position_opened,
    POSITION_CLOSED_EVENT: _read_position_closed,
    LIQUIDITY_PROVIDED_EVENT: _read_liquidity_provided,
    LIQUIDITY_REMOVED_EVENT: _read_liquidity_removed,
}


class BluefinEventDecoder(EventDecoder):
    """
    BCS decoder for Bluefin spot events.

    It:
    - picks a struct reader by the event's Move type name,
    - reads the fields in declaration order,
    - rejects payloads with missing or trailing bytes (EventDecodeError).

    Unknown type names decode to None.
    """

    def __init__(self, *, readers: Mapping[str, _EventReader] | None = None) -> None:
        self._readers = dict(DEFAULT_EVENT_READERS if readers is None else readers)

    @classmethod
    def for_types(cls, *type_names: str) -> "BluefinEventDecoder":
        unknown = set(type_names) - set(DEFAULT_EVENT_READERS)
        if unknown:
            raise ValueError(f"No BCS reader for event types: {sorted(unknown)}")
        return cls(readers={name: DEFAULT_EVENT_READERS[name] for name in type_names})

    @property
    def type_names(self) -> frozenset[str]:
        return frozenset(self._readers)

    def decode(self, *, type_name: str, contents: bytes) -> BluefinEvent | None:
        reader_fn = self._readers.get(type_name)
        if reader_fn is None:
            return None

        reader = BcsReader(contents, type_name=type_name)
        event = reader_fn(reader)
        reader.finish()
        return event
