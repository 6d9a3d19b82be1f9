from __future__ import annotations

from sqlalchemy import BigInteger, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from autoliquid_indexer.app.infrastructure.db.db_base import BaseDB


class SuiErrorTransactionsDB(BaseDB):
    """
    Failed transactions that touched the Bluefin package without emitting events.

    `id` is a surrogate key; txn_digest is the natural key and the conflict
    target of idempotent inserts.
    """

    __tablename__ = "sui_error_transactions"
    __table_args__ = (UniqueConstraint("txn_digest", name="uq_sui_error_transactions_txn_digest"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    txn_digest: Mapped[str] = mapped_column(Text, nullable=False)
    sender_address: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    failure_status: Mapped[str] = mapped_column(Text, nullable=False)
    package: Mapped[str] = mapped_column(Text, nullable=False)
    cmd_idx: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
