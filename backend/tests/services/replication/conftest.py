"""Store doubles for replication tests."""

import pytest
from typing import Any, Dict, List

from sims.services.replication import MissingColumnError, RelationalStore, SQLAlchemyStore


class RecordingStore(RelationalStore):
    """Delegates to another store and records every upsert payload and outcome."""

    def __init__(self, inner: RelationalStore):
        self.inner = inner
        self.name = inner.name
        self.upsert_calls: List[List[Dict[str, Any]]] = []
        self.upsert_errors: List[Exception] = []
        self.delete_calls: List[Dict[str, Any]] = []

    async def select(self, table, columns=None, filters=None):
        return await self.inner.select(table, columns=columns, filters=filters)

    async def upsert(self, table, rows, on_conflict="id"):
        self.upsert_calls.append([dict(row) for row in rows])
        try:
            return await self.inner.upsert(table, rows, on_conflict=on_conflict)
        except Exception as e:
            self.upsert_errors.append(e)
            raise

    async def delete(self, table, filters):
        self.delete_calls.append(dict(filters))
        return await self.inner.delete(table, filters)


class ShiftingSchemaStore(RelationalStore):
    """Reports a different missing column on every upsert attempt."""

    def __init__(self):
        self.name = "shifting"
        self.attempts = 0

    async def select(self, table, columns=None, filters=None):
        return []

    async def upsert(self, table, rows, on_conflict="id"):
        self.attempts += 1
        raise MissingColumnError(f"column_{self.attempts}", table=table)

    async def delete(self, table, filters):
        return 0


@pytest.fixture
def primary_store(primary_engine):
    return SQLAlchemyStore(primary_engine, name="primary")


@pytest.fixture
def secondary_store(secondary_engine):
    return RecordingStore(SQLAlchemyStore(secondary_engine, name="external"))


@pytest.fixture
def shifting_store():
    return ShiftingSchemaStore()
