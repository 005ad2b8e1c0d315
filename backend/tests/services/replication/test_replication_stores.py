"""Tests for the SQLAlchemy store and missing-column detection."""

import pytest
from unittest.mock import Mock
from sqlalchemy.exc import OperationalError, ProgrammingError

from sims.services.replication import (
    MissingColumnError,
    SQLAlchemyStore,
    StoreError,
    extract_missing_column,
)
from sims.services.replication.stores import normalize_rows


class TestExtractMissingColumn:
    """Undefined-column errors from the supported drivers."""

    def test_sqlite_message(self):
        orig = Exception("table students has no column named ghost_column")
        exc = OperationalError("INSERT ...", {}, orig)

        assert extract_missing_column(exc) == "ghost_column"

    def test_postgres_sqlstate(self):
        orig = Mock()
        orig.sqlstate = "42703"
        orig.__str__ = Mock(return_value='column "ghost_column" of relation "students" does not exist')
        exc = ProgrammingError("INSERT ...", {}, orig)

        assert extract_missing_column(exc) == "ghost_column"

    def test_postgres_pgcode(self):
        orig = Mock(spec=["pgcode", "__str__"])
        orig.pgcode = "42703"
        orig.__str__ = Mock(return_value='column "nickname" does not exist')

        assert extract_missing_column(ProgrammingError("SELECT", {}, orig)) == "nickname"

    def test_other_sqlstate_is_not_a_missing_column(self):
        orig = Mock()
        orig.sqlstate = "42501"
        orig.__str__ = Mock(return_value='permission denied for table students, column "x" does not exist')

        assert extract_missing_column(ProgrammingError("INSERT", {}, orig)) is None

    def test_unrelated_error(self):
        orig = Exception("UNIQUE constraint failed: students.email")

        assert extract_missing_column(OperationalError("INSERT", {}, orig)) is None


class TestNormalizeRows:

    def test_missing_keys_filled_with_none(self):
        rows = normalize_rows([{"id": 1, "name": "Ada"}, {"id": 2, "email": "g@example.edu"}])

        assert rows == [
            {"id": 1, "name": "Ada", "email": None},
            {"id": 2, "name": None, "email": "g@example.edu"},
        ]

    def test_empty(self):
        assert normalize_rows([]) == []


class TestSQLAlchemyStore:

    @pytest.mark.asyncio
    async def test_upsert_select_delete(self, secondary_engine, run_ddl):
        await run_ddl(secondary_engine, "CREATE TABLE courses (id TEXT PRIMARY KEY, code TEXT, credits INTEGER)")
        store = SQLAlchemyStore(secondary_engine)

        assert await store.upsert("courses", [{"id": "c-1", "code": "CS101", "credits": 3}]) == 1
        assert await store.upsert("courses", [{"id": "c-1", "code": "CS101", "credits": 4}]) == 1

        assert await store.select("courses") == [{"id": "c-1", "code": "CS101", "credits": 4}]
        assert await store.select("courses", columns=["code"]) == [{"code": "CS101"}]

        assert await store.delete("courses", {"id": "c-1"}) == 1
        assert await store.delete("courses", {"id": "c-1"}) == 0

    @pytest.mark.asyncio
    async def test_upsert_with_only_primary_key(self, secondary_engine, run_ddl):
        await run_ddl(secondary_engine, "CREATE TABLE tags (id TEXT PRIMARY KEY)")
        store = SQLAlchemyStore(secondary_engine)

        await store.upsert("tags", [{"id": "t-1"}])
        await store.upsert("tags", [{"id": "t-1"}])

        assert await store.select("tags") == [{"id": "t-1"}]

    @pytest.mark.asyncio
    async def test_upsert_empty_payload_is_noop(self, secondary_engine):
        store = SQLAlchemyStore(secondary_engine)

        assert await store.upsert("missing_table", []) == 0

    @pytest.mark.asyncio
    async def test_missing_column_is_translated(self, secondary_engine, run_ddl):
        await run_ddl(secondary_engine, "CREATE TABLE students (id TEXT PRIMARY KEY, name TEXT)")
        store = SQLAlchemyStore(secondary_engine)

        with pytest.raises(MissingColumnError) as exc_info:
            await store.upsert("students", [{"id": "s-1", "name": "Ada", "nickname": "A"}])

        assert exc_info.value.column == "nickname"
        assert exc_info.value.table == "students"
        assert await store.select("students") == []

    @pytest.mark.asyncio
    async def test_missing_table_is_a_store_error(self, secondary_engine):
        store = SQLAlchemyStore(secondary_engine)

        with pytest.raises(StoreError) as exc_info:
            await store.upsert("nowhere", [{"id": "x"}])

        assert not isinstance(exc_info.value, MissingColumnError)
        assert "nowhere" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_delete_requires_filters(self, secondary_engine):
        store = SQLAlchemyStore(secondary_engine)

        with pytest.raises(StoreError):
            await store.delete("students", {})
