"""
Builds a ReplicationGateway from application settings.
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from sims.core.config import Settings
from sims.core.database import get_external_engine
from .errors import ConfigurationError
from .gateway import ReplicationGateway
from .postgrest import PostgrestStore
from .stores import RelationalStore, SQLAlchemyStore

logger = logging.getLogger(__name__)


def build_secondary_store(settings: Settings) -> RelationalStore:
    """
    External store from settings. A SQLAlchemy URL takes precedence over a
    PostgREST endpoint; with neither configured nothing can be replicated.
    """
    if not settings.external_configured:
        logger.error("Missing external database credentials")
        raise ConfigurationError("External database credentials not configured")

    if settings.EXTERNAL_DATABASE_URL:
        return SQLAlchemyStore(get_external_engine(settings.EXTERNAL_DATABASE_URL), name="external")

    return PostgrestStore(
        settings.EXTERNAL_SUPABASE_URL,
        settings.EXTERNAL_SUPABASE_SERVICE_KEY,
        timeout=settings.EXTERNAL_TIMEOUT_SECONDS,
        name="external"
    )


def build_gateway(settings: Settings, primary_engine: Optional[AsyncEngine] = None) -> ReplicationGateway:
    secondary = build_secondary_store(settings)
    primary = SQLAlchemyStore(primary_engine, name="primary") if primary_engine is not None else None
    return ReplicationGateway(
        secondary,
        primary=primary,
        table_columns=settings.REPLICATION_TABLE_COLUMNS,
        excluded_tables=settings.REPLICATION_EXCLUDED_TABLES,
        batch_size=settings.SYNC_BATCH_SIZE,
        max_attempts=settings.SYNC_MAX_ATTEMPTS
    )
