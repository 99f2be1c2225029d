"""Database session management."""

from src.db.session import AsyncSessionLocal, get_db, get_db_context

__all__ = [
    "AsyncSessionLocal",
    "get_db",
    "get_db_context",
]
