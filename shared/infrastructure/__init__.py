"""
Infrastructure module: Database sessions and transactions (db.py).
"""

from shared.infrastructure.db import (
    get_engine,
    SessionLocal,
    get_db,
    get_db_context,
    safe_commit,
    TransactionManager,
)

__all__ = [
    "get_engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
    "TransactionManager",
]
