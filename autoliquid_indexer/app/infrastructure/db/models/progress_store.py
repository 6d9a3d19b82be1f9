from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, PrimaryKeyConstraint, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from autoliquid_indexer.app.infrastructure.db.db_base import BaseDB


class ProgressStoreDB(BaseDB):
    """
    Per-task ingestion progress.

    One row = one task (live tail or backfill range). Rows are updated in
    place and never deleted.
    """

    __tablename__ = "progress_store"
    __table_args__ = (PrimaryKeyConstraint("task_name"),)

    task_name: Mapped[str] = mapped_column(Text, nullable=False)

    """Last checkpoint recorded as processed (inclusive)."""
    checkpoint: Mapped[int] = mapped_column(BigInteger, nullable=False)

    """Upper bound of the task range; i64::MAX for the live task."""
    target_checkpoint: Mapped[int] = mapped_column(BigInteger, nullable=False)

    timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=False),
        nullable=True,
        server_default=text("CURRENT_TIMESTAMP"),
    )
