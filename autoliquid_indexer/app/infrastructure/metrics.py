"""Prometheus metrics for the indexer."""
from __future__ import annotations

import logging
from functools import lru_cache

from prometheus_client import REGISTRY, CollectorRegistry, Counter, start_http_server

logger = logging.getLogger(__name__)


class IndexerMetrics:
    """
    Counters shared by every mapper worker.

    prometheus_client counters are thread-safe, so one instance can be used
    from any number of concurrent tasks.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = REGISTRY if registry is None else registry
        self.total_transactions = Counter(
            "bluefin_indexer_total_transactions",
            "Total number of transactions scanned by the Bluefin indexer",
            registry=self.registry,
        )


@lru_cache(maxsize=None)
def default_indexer_metrics() -> IndexerMetrics:
    """Process-wide metrics registered on the default prometheus registry."""
    return IndexerMetrics()


def start_metrics_server(port: int) -> None:
    start_http_server(port)
    logger.info("Metrics server started at port %s", port)
