"""
Caller-side helpers used by the editing endpoints after a primary commit.

Replication is best-effort: failures are logged and reported as False, never
raised, and never undo the primary write.
"""

import logging
from typing import Any, Callable, Mapping, Union

from .errors import ReplicationError
from .gateway import ReplicationGateway
from .types import ChangeRequest, SyncOperation

logger = logging.getLogger(__name__)


class ReplicationDispatcher:

    def __init__(self, gateway_factory: Callable[[], ReplicationGateway]):
        self.gateway_factory = gateway_factory

    async def sync_to_external(self, request: ChangeRequest) -> bool:
        logger.info(f"Syncing {request.operation.value} on {request.table}")
        try:
            gateway = self.gateway_factory()
            result = await gateway.apply(request)
        except ReplicationError as e:
            logger.error(f"Replication of {request.operation.value} on {request.table} failed: {e.to_dict()}")
            return False
        except Exception as e:
            logger.exception(f"Unexpected error replicating {request.operation.value} on {request.table}: {e}")
            return False

        logger.info(f"Replication success: {result.to_dict()}")
        return True

    async def sync_insert(self, table: str, row: Mapping[str, Any]) -> bool:
        return await self.sync_to_external(ChangeRequest(SyncOperation.INSERT, table, row=row))

    async def sync_update(self, table: str, row: Mapping[str, Any]) -> bool:
        return await self.sync_to_external(ChangeRequest(SyncOperation.UPDATE, table, row=row))

    async def sync_delete(self, table: str, row_id: Union[str, int]) -> bool:
        return await self.sync_to_external(ChangeRequest(SyncOperation.DELETE, table, row_id=row_id))

    async def sync_all_records(self, table: str) -> bool:
        return await self.sync_to_external(ChangeRequest(SyncOperation.SYNC_ALL, table))
