"""
Relational stores the replication gateway reads from and writes to.

A store exposes the handful of table operations replication needs: select
with optional equality filters, upsert keyed by a conflict column, and
delete by filter. Stores translate their driver's errors into StoreError, and
into MissingColumnError when the table lacks a column present in the payload.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from sqlalchemy import column, delete, literal_column, select, table as table_clause
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from .errors import MissingColumnError, StoreError

logger = logging.getLogger(__name__)

# SQLSTATE for "undefined column" (PostgreSQL)
UNDEFINED_COLUMN_SQLSTATE = "42703"

_MISSING_COLUMN_PATTERNS = (
    re.compile(r'column "([^"]+)"(?: of relation "[^"]+")? does not exist'),
    re.compile(r"has no column named (\S+)"),
)

_UPSERT_DIALECTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class RelationalStore(ABC):
    """Minimal table-level interface over a relational database."""

    name: str = "store"

    @abstractmethod
    async def select(
        self,
        table: str,
        columns: Optional[Sequence[str]] = None,
        filters: Optional[Mapping[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Return rows of `table`, all columns when `columns` is None."""

    @abstractmethod
    async def upsert(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        on_conflict: str = "id"
    ) -> int:
        """Insert rows, updating those whose `on_conflict` value exists."""

    @abstractmethod
    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        """Delete rows matching all filters. Matching nothing is not an error."""


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Give every row the same keys (first-seen order), filling gaps with None."""
    rows = [dict(row) for row in rows]
    keys: Dict[str, None] = {}
    for row in rows:
        for key in row:
            keys.setdefault(key, None)
    return [{key: row.get(key) for key in keys} for row in rows]


def extract_missing_column(exc: BaseException) -> Optional[str]:
    """
    Name of the column a database error complains about, if it is an
    undefined-column error.

    The SQLSTATE exposed by psycopg and asyncpg is checked first; the message
    is only parsed to recover the column name, or when the driver (SQLite)
    has no structured code.
    """
    orig = getattr(exc, "orig", None) or exc
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code and code != UNDEFINED_COLUMN_SQLSTATE:
        return None

    message = str(orig)
    for pattern in _MISSING_COLUMN_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group(1).strip('"')
    return None


class SQLAlchemyStore(RelationalStore):
    """
    Store backed by a SQLAlchemy async engine.

    Statements are built from lightweight table()/column() constructs rather
    than reflected metadata, so a column missing on the database surfaces as
    a database error instead of being filtered out locally.
    """

    def __init__(self, engine: AsyncEngine, name: str = "database"):
        self.engine = engine
        self.name = name

    async def select(self, table, columns=None, filters=None):
        if columns:
            stmt = select(*[column(name) for name in columns])
        else:
            stmt = select(literal_column("*"))
        stmt = stmt.select_from(table_clause(table))
        for key, value in (filters or {}).items():
            stmt = stmt.where(column(key) == value)

        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(stmt)
                return [dict(row._mapping) for row in result]
        except (SQLAlchemyError, OSError) as e:
            raise self._translate_error(e, table) from e

    async def upsert(self, table, rows, on_conflict="id"):
        rows = normalize_rows(rows)
        if not rows:
            return 0

        insert_fn = _UPSERT_DIALECTS.get(self.engine.dialect.name)
        if insert_fn is None:
            raise StoreError(
                f"Upsert is not supported for dialect '{self.engine.dialect.name}'",
                table=table
            )

        columns = list(rows[0])
        stmt = insert_fn(table_clause(table, *[column(name) for name in columns])).values(rows)
        update_columns = [name for name in columns if name != on_conflict]
        if update_columns:
            stmt = stmt.on_conflict_do_update(
                index_elements=[on_conflict],
                set_={name: stmt.excluded[name] for name in update_columns}
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[on_conflict])

        try:
            async with self.engine.begin() as conn:
                await conn.execute(stmt)
        except (SQLAlchemyError, OSError) as e:
            raise self._translate_error(e, table) from e
        return len(rows)

    async def delete(self, table, filters):
        if not filters:
            raise StoreError("Refusing to delete without filters", table=table)

        stmt = delete(table_clause(table))
        for key, value in filters.items():
            stmt = stmt.where(column(key) == value)

        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.rowcount or 0
        except (SQLAlchemyError, OSError) as e:
            raise self._translate_error(e, table) from e

    def _translate_error(self, exc: Exception, table: str) -> StoreError:
        orig = getattr(exc, "orig", None) or exc
        code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
        missing = extract_missing_column(exc)
        if missing:
            return MissingColumnError(
                missing, table=table, code=code, message=str(orig), original_exception=exc
            )
        return StoreError(str(orig), table=table, code=code, original_exception=exc)
