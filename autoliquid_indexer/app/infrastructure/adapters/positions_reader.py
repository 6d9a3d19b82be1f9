from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from autoliquid_indexer.app.domain.checkpoint import normalize_sui_address
from autoliquid_indexer.app.domain.records import ActivePosition

# Latest row per position (by checkpoint; a close wins a tie), open ones only
_ACTIVE_POSITIONS_BY_SENDER_SQL = text(
    """
    SELECT
        latest.position_id,
        latest.pool_id,
        latest.sender,
        latest.tick_lower,
        latest.tick_upper,
        latest.checkpoint
    FROM (
        SELECT
            p.position_id,
            p.pool_id,
            p.sender,
            p.tick_lower,
            p.tick_upper,
            p.checkpoint,
            p.is_close,
            ROW_NUMBER() OVER (
                PARTITION BY p.position_id
                ORDER BY p.checkpoint DESC, p.checkpoint_timestamp_ms DESC, p.is_close DESC
            ) AS rn
        FROM position_updates p
        WHERE p.sender = :sender
    ) latest
    WHERE latest.rn = 1
      AND latest.is_close = :is_close
    ORDER BY latest.checkpoint DESC, latest.position_id
    """
)


async def get_active_positions_by_sender(
    engine: AsyncEngine,
    sender: str,
) -> list[ActivePosition]:
    """Open positions owned by `sender`, most recently updated first."""
    async with engine.connect() as conn:
        result = await conn.execute(
            _ACTIVE_POSITIONS_BY_SENDER_SQL,
            {"sender": normalize_sui_address(sender), "is_close": False},
        )
        rows = result.mappings().all()

    return [
        ActivePosition(
            position_id=r["position_id"],
            pool_id=r["pool_id"],
            sender=r["sender"],
            tick_lower=r["tick_lower"],
            tick_upper=r["tick_upper"],
            checkpoint=r["checkpoint"],
        )
        for r in rows
    ]
