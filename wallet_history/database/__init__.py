"""
Database layer — transfer storage (SQLite backend) and wallet registry (SQLAlchemy).
"""

from wallet_history.database.database import (
    Database,
    SQLiteBackend,
    TransferStoreBackend,
    get_database,
)
from wallet_history.database.models import (
    UNKNOWN_COUNTERPARTY,
    TrackedWallet,
    TransferRecord,
)
from wallet_history.database.wallet_registry import (
    WalletRegistry,
    is_valid_wallet,
    validate_wallet,
)

__all__ = [
    "Database",
    "SQLiteBackend",
    "TransferStoreBackend",
    "get_database",
    "UNKNOWN_COUNTERPARTY",
    "TrackedWallet",
    "TransferRecord",
    "WalletRegistry",
    "is_valid_wallet",
    "validate_wallet",
]
