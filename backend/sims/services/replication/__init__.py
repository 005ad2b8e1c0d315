"""
External Database Replication

Best-effort mirroring of primary-database changes onto a secondary database
whose schema may lag behind:
- Upsert by primary key with automatic dropping of unknown columns
- Idempotent deletes
- Batched full-table resync
- SQLAlchemy and PostgREST stores
"""

from .errors import (
    ReplicationError,
    ConfigurationError,
    InvalidChangeRequestError,
    StoreError,
    MissingColumnError,
    ReplicationFailedError,
    RetryExhaustedError
)
from .types import ChangeRequest, ReplicationResult, SyncOperation, ColumnAllowList
from .stores import RelationalStore, SQLAlchemyStore, extract_missing_column
from .postgrest import PostgrestStore
from .gateway import ReplicationGateway
from .dispatch import ReplicationDispatcher
from .factory import build_gateway, build_secondary_store

__all__ = [
    # Errors
    'ReplicationError',
    'ConfigurationError',
    'InvalidChangeRequestError',
    'StoreError',
    'MissingColumnError',
    'ReplicationFailedError',
    'RetryExhaustedError',

    # Types
    'ChangeRequest',
    'ReplicationResult',
    'SyncOperation',
    'ColumnAllowList',

    # Stores
    'RelationalStore',
    'SQLAlchemyStore',
    'PostgrestStore',
    'extract_missing_column',

    # Gateway
    'ReplicationGateway',
    'ReplicationDispatcher',
    'build_gateway',
    'build_secondary_store'
]
