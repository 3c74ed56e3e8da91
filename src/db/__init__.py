"""Database session management."""

from src.db.session import async_session_maker, engine, get_db, get_db_context

__all__ = [
    "async_session_maker",
    "engine",
    "get_db",
    "get_db_context",
]
