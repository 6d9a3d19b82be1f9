from __future__ import annotations

from sqlalchemy import BigInteger, Boolean, Index, Integer, PrimaryKeyConstraint, Text
from sqlalchemy.orm import Mapped, mapped_column

from autoliquid_indexer.app.infrastructure.db.db_base import BaseDB


class PositionUpdatesDB(BaseDB):
    """
    Position lifecycle projection for Bluefin spot pools.

    One row = one PositionOpened / PositionClosed event.

    Idempotency:
      - PK is event_digest = transaction digest + index of the event in the tx
    """

    __tablename__ = "position_updates"
    __table_args__ = (
        PrimaryKeyConstraint("event_digest"),
        # Active positions per owner: latest row by checkpoint per position_id
        Index(
            "ix_position_updates_sender_position_checkpoint",
            "sender",
            "position_id",
            "checkpoint",
        ),
    )

    digest: Mapped[str] = mapped_column(Text, nullable=False)
    event_digest: Mapped[str] = mapped_column(Text, nullable=False)
    sender: Mapped[str] = mapped_column(Text, nullable=False)

    checkpoint: Mapped[int] = mapped_column(BigInteger, nullable=False)
    checkpoint_timestamp_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)

    package: Mapped[str] = mapped_column(Text, nullable=False)
    pool_id: Mapped[str] = mapped_column(Text, nullable=False)
    position_id: Mapped[str] = mapped_column(Text, nullable=False)

    tick_lower: Mapped[int] = mapped_column(Integer, nullable=False)
    tick_upper: Mapped[int] = mapped_column(Integer, nullable=False)

    # u128 / decimal values kept as text to avoid overflow and float rounding
    liquidity: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[str] = mapped_column(Text, nullable=False)

    is_close: Mapped[bool] = mapped_column(Boolean, nullable=False)
