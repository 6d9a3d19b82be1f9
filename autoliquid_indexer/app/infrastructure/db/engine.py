from __future__ import annotations

from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from autoliquid_indexer.app.config import settings


def create_app_async_engine(
    *,
    url: str | None = None,
    echo: bool = False,
    pool_size: int | None = None,
) -> AsyncEngine:
    """
    AsyncEngine for CLI tasks and checkpoint workers.

    Every in-flight checkpoint holds one connection for its write batch and
    progress saves need one more, so the pool defaults to CONCURRENCY + 1.
    SQLite URLs keep the dialect's own pool.
    """
    db_url = make_url(url or settings.database_url)  # postgresql+asyncpg://...

    kwargs: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
    if db_url.get_backend_name() != "sqlite":
        kwargs["pool_size"] = pool_size or settings.concurrency + 1

    return create_async_engine(db_url, **kwargs)
