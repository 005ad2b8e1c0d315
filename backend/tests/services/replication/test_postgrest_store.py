"""Tests for the PostgREST store's request building and error translation."""

import aiohttp
import pytest
from unittest.mock import AsyncMock, patch

from sims.services.replication import (
    ChangeRequest,
    MissingColumnError,
    PostgrestStore,
    ReplicationGateway,
    StoreError,
    SyncOperation,
)

SCHEMA_CACHE_ERROR = {
    "code": "PGRST204",
    "details": None,
    "hint": None,
    "message": "Could not find the 'ghost_column' column of 'students' in the schema cache",
}


@pytest.fixture
def store():
    return PostgrestStore("https://external.example.supabase.co/", "service-key")


class TestPostgrestStore:

    def test_headers_carry_service_key(self, store):
        assert store.base_url == "https://external.example.supabase.co"
        assert store.headers["apikey"] == "service-key"
        assert store.headers["Authorization"] == "Bearer service-key"

    @pytest.mark.asyncio
    async def test_select_builds_query(self, store):
        with patch.object(store, "_request", new=AsyncMock(return_value=(200, [{"id": "s-1", "name": "Ada"}]))) as request:
            rows = await store.select("students", columns=["id", "name"], filters={"id": "s-1"})

        assert rows == [{"id": "s-1", "name": "Ada"}]
        request.assert_awaited_once_with("GET", "students", params={"select": "id,name", "id": "eq.s-1"})

    @pytest.mark.asyncio
    async def test_upsert_merges_duplicates_on_id(self, store):
        with patch.object(store, "_request", new=AsyncMock(return_value=(201, None))) as request:
            count = await store.upsert("students", [{"id": "s-1"}, {"id": "s-2", "name": "Grace"}])

        assert count == 2
        kwargs = request.await_args.kwargs
        assert kwargs["params"] == {"on_conflict": "id"}
        assert "resolution=merge-duplicates" in kwargs["headers"]["Prefer"]
        assert kwargs["body"] == [{"id": "s-1", "name": None}, {"id": "s-2", "name": "Grace"}]

    @pytest.mark.asyncio
    async def test_schema_cache_error_is_missing_column(self, store):
        with patch.object(store, "_request", new=AsyncMock(return_value=(400, SCHEMA_CACHE_ERROR))):
            with pytest.raises(MissingColumnError) as exc_info:
                await store.upsert("students", [{"id": "s-1", "ghost_column": 1}])

        assert exc_info.value.column == "ghost_column"
        assert exc_info.value.code == "PGRST204"
        assert exc_info.value.status == 400

    @pytest.mark.asyncio
    async def test_undefined_column_sqlstate_is_missing_column(self, store):
        error = {"code": "42703", "message": 'column "nickname" of relation "students" does not exist'}
        with patch.object(store, "_request", new=AsyncMock(return_value=(400, error))):
            with pytest.raises(MissingColumnError) as exc_info:
                await store.upsert("students", [{"id": "s-1", "nickname": "A"}])

        assert exc_info.value.column == "nickname"

    @pytest.mark.asyncio
    async def test_permission_error_is_store_error(self, store):
        error = {"code": "42501", "message": "permission denied for table students"}
        with patch.object(store, "_request", new=AsyncMock(return_value=(401, error))):
            with pytest.raises(StoreError) as exc_info:
                await store.upsert("students", [{"id": "s-1"}])

        assert not isinstance(exc_info.value, MissingColumnError)
        assert exc_info.value.code == "42501"
        assert exc_info.value.message == "permission denied for table students"

    @pytest.mark.asyncio
    async def test_delete_filters_by_id(self, store):
        with patch.object(store, "_request", new=AsyncMock(return_value=(200, []))) as request:
            deleted = await store.delete("students", {"id": "s-1"})

        assert deleted == 0
        assert request.await_args.kwargs["params"] == {"id": "eq.s-1"}

    @pytest.mark.asyncio
    async def test_transport_error_is_store_error(self, store):
        with patch("sims.services.replication.postgrest.aiohttp.ClientSession") as session_cls:
            session_cls.return_value.__aenter__.side_effect = aiohttp.ClientConnectionError("refused")

            with pytest.raises(StoreError) as exc_info:
                await store.select("students")

        assert "refused" in exc_info.value.message


class TestGatewayOverPostgrest:

    @pytest.mark.asyncio
    async def test_auto_drop_resends_without_column(self, store):
        request = AsyncMock(side_effect=[(400, SCHEMA_CACHE_ERROR), (201, None)])
        with patch.object(store, "_request", new=request):
            result = await ReplicationGateway(store).apply(
                ChangeRequest(SyncOperation.UPDATE, "students", row={"id": "s-1", "name": "Ada", "ghost_column": 1})
            )

        assert result.dropped_columns == {"ghost_column"}
        assert request.await_args_list[1].kwargs["body"] == [{"id": "s-1", "name": "Ada"}]
