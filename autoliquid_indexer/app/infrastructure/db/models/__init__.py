from autoliquid_indexer.app.infrastructure.db.models.position_updates import PositionUpdatesDB
from autoliquid_indexer.app.infrastructure.db.models.progress_store import ProgressStoreDB
from autoliquid_indexer.app.infrastructure.db.models.sui_error_transactions import (
    SuiErrorTransactionsDB,
)

__all__ = ["PositionUpdatesDB", "ProgressStoreDB", "SuiErrorTransactionsDB"]
