"""
Events emitted by the Bluefin spot CLMM package.

Layouts mirror the Move structs of the package's `events` module; fields
are listed in declaration order because BCS encodes structs positionally.
"""
from __future__ import annotations

from dataclasses import dataclass

POSITION_OPENED_EVENT = "PositionOpened"
POSITION_CLOSED_EVENT = "PositionClosed"
LIQUIDITY_PROVIDED_EVENT = "LiquidityProvided"
LIQUIDITY_REMOVED_EVENT = "LiquidityRemoved"


@dataclass(frozen=True)
class PositionOpened:
    pool_id: str
    position_id: str
    tick_lower: int
    tick_upper: int


@dataclass(frozen=True)
class PositionClosed:
    pool_id: str
    position_id: str
    tick_lower: int
    tick_upper: int


@dataclass(frozen=True)
class LiquidityChange:
    """
    Shared payload of LiquidityProvided / LiquidityRemoved.

    `sequence_number` is monotonic per pool and orders concurrent liquidity
    changes on the same position.
    """

    pool_id: str
    position_id: str
    coin_a_amount: int
    coin_b_amount: int
    pool_coin_a_amount: int
    pool_coin_b_amount: int
    liquidity: int
    before_liquidity: int
    after_liquidity: int
    current_sqrt_price: int
    current_tick_index: int
    low_tick: int
    upper_tick: int
    sequence_number: int


@dataclass(frozen=True)
class LiquidityProvided(LiquidityChange):
    pass


@dataclass(frozen=True)
class LiquidityRemoved(LiquidityChange):
    pass


BluefinEvent = PositionOpened | PositionClosed | LiquidityProvided | LiquidityRemoved
