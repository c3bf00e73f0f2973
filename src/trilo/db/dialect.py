"""Dialect-aware INSERT ... ON CONFLICT construction.

PostgreSQL is the production store; SQLite backs the test suite. Both
dialects expose ``on_conflict_do_update`` with ``index_elements``.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession


def upsert_insert(db: AsyncSession, model: Any) -> Any:
    """Return an INSERT construct for ``model`` matching the session's dialect."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert(model)
    if dialect == "sqlite":
        return sqlite_insert(model)
    msg = f"Upsert not supported for dialect {dialect!r}"
    raise NotImplementedError(msg)
