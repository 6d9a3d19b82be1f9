from __future__ import annotations

import typer

from autoliquid_indexer.app.infrastructure.adapters.positions_reader import (
    get_active_positions_by_sender,
)
from autoliquid_indexer.app.infrastructure.db.engine import create_app_async_engine


async def active_positions_task(*, sender: str) -> None:
    """Task: print the open positions of a wallet."""
    engine = create_app_async_engine()
    try:
        positions = await get_active_positions_by_sender(engine, sender)
    finally:
        await engine.dispose()

    typer.echo(f"{len(positions)} active position(s) for {sender}")
    for p in positions:
        typer.echo(
            f"  {p.position_id} pool={p.pool_id} ticks=[{p.tick_lower}, {p.tick_upper}] "
            f"checkpoint={p.checkpoint}"
        )
