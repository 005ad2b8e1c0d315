"""API fixtures: the app wired to throwaway primary and external databases."""

import httpx
import pytest

from main import app
from sims.api.deps import get_replication_dispatcher
from sims.core.config import DEFAULT_TABLE_COLUMNS
from sims.core.database import get_db
from sims.services.replication import ReplicationDispatcher, ReplicationGateway, SQLAlchemyStore


@pytest.fixture
def replication_dispatcher(primary_engine, secondary_engine):
    """Dispatcher that replicates into the secondary test database."""
    def gateway_factory():
        return ReplicationGateway(
            SQLAlchemyStore(secondary_engine, name="external"),
            primary=SQLAlchemyStore(primary_engine, name="primary"),
            table_columns=DEFAULT_TABLE_COLUMNS
        )
    return ReplicationDispatcher(gateway_factory)


@pytest.fixture
async def api_client(session_factory, replication_dispatcher):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_replication_dispatcher] = lambda: replication_dispatcher
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
