"""
Pytest configuration and fixtures
"""

import struct

import pytest
import pytest_asyncio
from prometheus_client import CollectorRegistry
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from autoliquid_indexer.app.domain.checkpoint import (
    CheckpointTransaction,
    Event,
    ExecutionStatus,
    InputObject,
    MoveCall,
    StructTag,
)
from autoliquid_indexer.app.infrastructure.db import models  # noqa: F401
from autoliquid_indexer.app.infrastructure.db.db_base import BaseDB
from autoliquid_indexer.app.infrastructure.metrics import IndexerMetrics

PACKAGE_ID = "0x" + "ab" * 32
OTHER_PACKAGE_ID = "0x" + "cd" * 32
POOL_ID = "0x" + "11" * 32
POSITION_ID = "0x" + "22" * 32
SENDER = "0x" + "33" * 32


def _address_bytes(address: str) -> bytes:
    return bytes.fromhex(address[2:].rjust(64, "0"))


def encode_position_event(pool_id: str, position_id: str, tick_lower: int, tick_upper: int) -> bytes:
    """BCS payload of PositionOpened / PositionClosed."""
    return (
        _address_bytes(pool_id)
        + _address_bytes(position_id)
        + struct.pack("<ii", tick_lower, tick_upper)
    )


def encode_liquidity_event(
    pool_id: str,
    position_id: str,
    *,
    amounts: tuple[int, int, int, int] = (1, 2, 3, 4),
    liquidity: tuple[int, int, int, int] = (5, 6, 11, 2**100),
    ticks: tuple[int, int, int] = (-7, -60, 60),
    sequence_number: int = 9,
) -> bytes:
    """BCS payload of LiquidityProvided / LiquidityRemoved."""
    return (
        _address_bytes(pool_id)
        + _address_bytes(position_id)
        + struct.pack("<QQQQ", *amounts)
        + b"".join(v.to_bytes(16, "little") for v in liquidity)
        + struct.pack("<iii", *ticks)
        + sequence_number.to_bytes(16, "little")
    )


def make_tx(
    *,
    digest: str = "TxDigest1",
    sender: str = SENDER,
    package: str = PACKAGE_ID,
    touches: str | None = PACKAGE_ID,
    events: tuple[Event, ...] | None = (),
    status: ExecutionStatus | None = None,
) -> CheckpointTransaction:
    input_objects = (InputObject(object_id=POOL_ID, type_address=touches),) if touches else ()
    return CheckpointTransaction(
        digest=digest,
        sender=sender,
        status=status or ExecutionStatus.ok(),
        input_objects=input_objects,
        commands=(MoveCall(package=package, module="gateway", function="open_position"),),
        events=events,
    )


def make_event(name: str, contents: bytes, *, address: str = PACKAGE_ID) -> Event:
    return Event(type_=StructTag(address=address, module="events", name=name), contents=contents)


@pytest.fixture
def metrics():
    """Metrics bound to a private registry"""
    return IndexerMetrics(registry=CollectorRegistry())


@pytest.fixture
def builders():
    """Factories for checkpoint transactions and BCS payloads"""

    class _Builders:
        package_id = PACKAGE_ID
        other_package_id = OTHER_PACKAGE_ID
        pool_id = POOL_ID
        position_id = POSITION_ID
        sender = SENDER

        tx = staticmethod(make_tx)
        event = staticmethod(make_event)
        position_payload = staticmethod(encode_position_event)
        liquidity_payload = staticmethod(encode_liquidity_event)

    return _Builders()


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """File-backed SQLite engine with all tables created"""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'indexer.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(BaseDB.metadata.create_all)

    yield engine

    await engine.dispose()
