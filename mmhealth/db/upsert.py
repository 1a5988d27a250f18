"""Dialect-aware INSERT ... ON CONFLICT constructs.

PostgreSQL in production, SQLite in tests; both expose the same
``on_conflict_do_update`` / ``on_conflict_do_nothing`` API.
"""

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(db: AsyncSession, model):
    """Return an ``insert(model)`` that supports ON CONFLICT for the session's dialect."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite.insert(model)
    return postgresql.insert(model)
