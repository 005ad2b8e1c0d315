"""
Shared FastAPI dependencies.
"""
from sims.core.config import settings
from sims.core.database import engine
from sims.services.replication import ReplicationDispatcher, ReplicationGateway, build_gateway


def get_replication_gateway() -> ReplicationGateway:
    """Gateway from current settings; raises ConfigurationError when unconfigured."""
    return build_gateway(settings, primary_engine=engine)


def get_replication_dispatcher() -> ReplicationDispatcher:
    return ReplicationDispatcher(get_replication_gateway)
