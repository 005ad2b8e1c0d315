"""
API endpoint for replicating changes to the external database
"""

from fastapi import APIRouter, Depends, Response
import logging

from sims.api.deps import get_replication_gateway
from sims.core.config import settings
from sims.middleware.cors import cors_headers
from sims.schemas.sync import SyncRequest, SyncResponse, SyncErrorResponse
from sims.services.replication import ReplicationGateway

logger = logging.getLogger(__name__)
router = APIRouter()


@router.options("/external", include_in_schema=False)
async def sync_preflight():
    return Response(status_code=200, headers=cors_headers(settings))


@router.post(
    "/external",
    response_model=SyncResponse,
    responses={400: {"model": SyncErrorResponse}, 500: {"model": SyncErrorResponse}}
)
async def sync_to_external(
    sync_request: SyncRequest,
    gateway: ReplicationGateway = Depends(get_replication_gateway)
):
    """Apply one INSERT, UPDATE, DELETE or SYNC_ALL to the external database"""

    change = sync_request.to_change_request()
    logger.info(f"{change.operation.value} on {change.table} (id={sync_request.id})")

    result = await gateway.apply(change)
    return SyncResponse(success=True, result=result.to_dict())
