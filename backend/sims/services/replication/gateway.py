"""
Replication Gateway

Mirrors changes committed on the primary database onto an independently
provisioned external database:
- Single-row inserts and updates are upserted by primary key
- Deletes remove the matching row; deleting an absent row is a no-op
- SYNC_ALL copies a whole table in sequential batches
- Columns the external schema lacks are dropped from the payload and the
  upsert retried, up to a fixed number of attempts
- Excluded tables (account credentials) are refused before any store call
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set

from .errors import (
    ConfigurationError,
    InvalidChangeRequestError,
    MissingColumnError,
    ReplicationFailedError,
    RetryExhaustedError,
    StoreError,
)
from .stores import RelationalStore
from .types import ChangeRequest, ColumnAllowList, ReplicationResult, SyncOperation

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_ATTEMPTS = 10


def drop_column(rows: List[Dict[str, Any]], column: str) -> List[Dict[str, Any]]:
    return [{key: value for key, value in row.items() if key != column} for row in rows]


class ReplicationGateway:
    """Applies ChangeRequests to the external (secondary) store."""

    def __init__(
        self,
        secondary: RelationalStore,
        primary: Optional[RelationalStore] = None,
        table_columns: Optional[ColumnAllowList] = None,
        excluded_tables: Optional[Iterable[str]] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS
    ):
        if batch_size < 1 or max_attempts < 1:
            raise ValueError("batch_size and max_attempts must be positive")

        self.secondary = secondary
        self.primary = primary
        self.table_columns = dict(table_columns or {})
        self.excluded_tables = frozenset(excluded_tables or ())
        self.batch_size = batch_size
        self.max_attempts = max_attempts
        self.handlers = {
            SyncOperation.INSERT: self._apply_upsert,
            SyncOperation.UPDATE: self._apply_upsert,
            SyncOperation.DELETE: self._apply_delete,
            SyncOperation.SYNC_ALL: self._apply_sync_all,
        }
        missing = set(SyncOperation) - set(self.handlers)
        if missing:
            raise TypeError(f"No handler for operations: {sorted(op.value for op in missing)}")

    async def apply(self, request: ChangeRequest) -> ReplicationResult:
        """Apply one change to the secondary store."""
        if request.table in self.excluded_tables:
            raise InvalidChangeRequestError(
                f"Table '{request.table}' is not replicated",
                details={"table": request.table}
            )
        logger.info(f"{request.operation.value} on {request.table} (id={request.row_id})")
        result = ReplicationResult(operation=request.operation, table=request.table)
        try:
            await self.handlers[request.operation](request, result)
        except (ConfigurationError, ReplicationFailedError):
            raise
        except StoreError as e:
            logger.error(f"{request.operation.value} on {request.table} failed: {e.message}")
            raise ReplicationFailedError(
                e.message,
                operation=request.operation.value,
                table=request.table,
                dropped_columns=sorted(result.dropped_columns),
                original_exception=e
            ) from e

        logger.info(
            f"{request.operation.value} success on {request.table}: "
            f"{result.applied_row_count} row(s)"
            + (f", dropped columns {sorted(result.dropped_columns)}" if result.dropped_columns else "")
        )
        return result

    async def _apply_upsert(self, request: ChangeRequest, result: ReplicationResult) -> None:
        rows = request.rows()
        await self.upsert_with_auto_drop(request.table, rows, result.dropped_columns, request.operation)
        result.applied_row_count = len(rows)
        result.batches = 1

    async def _apply_delete(self, request: ChangeRequest, result: ReplicationResult) -> None:
        await self.secondary.delete(request.table, {"id": request.row_id})
        result.deleted_id = request.row_id

    async def _apply_sync_all(self, request: ChangeRequest, result: ReplicationResult) -> None:
        if self.primary is None:
            raise ConfigurationError("Primary backend credentials not available")

        columns = self.table_columns.get(request.table)
        logger.info(f"Selecting {', '.join(columns) if columns else '*'} from {request.table}")
        rows = await self.primary.select(request.table, columns=columns)
        logger.info(f"Fetched {len(rows)} records from {request.table}")

        total_batches = (len(rows) + self.batch_size - 1) // self.batch_size
        for index, start in enumerate(range(0, len(rows), self.batch_size), start=1):
            batch = rows[start:start + self.batch_size]
            # Columns found missing by earlier batches are stripped up front
            for name in result.dropped_columns:
                batch = drop_column(batch, name)
            await self.upsert_with_auto_drop(request.table, batch, result.dropped_columns, request.operation)
            result.applied_row_count += len(batch)
            result.batches += 1
            logger.info(f"Synced batch {index} of {total_batches} for {request.table}")

    async def upsert_with_auto_drop(
        self,
        table: str,
        rows: Sequence[Mapping[str, Any]],
        dropped: Set[str],
        operation: SyncOperation = SyncOperation.UPDATE
    ) -> None:
        """
        Upsert rows, removing any column the secondary reports as missing and
        retrying. `dropped` collects the removed columns and is updated in place.

        Raises RetryExhaustedError after max_attempts failed attempts. Errors
        other than a newly reported missing column propagate unchanged.
        """
        payload = [dict(row) for row in rows]
        dropped_here: List[str] = []

        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.secondary.upsert(table, payload, on_conflict="id")
                return
            except MissingColumnError as e:
                if e.column in dropped or e.column in dropped_here:
                    raise
                dropped_here.append(e.column)
                dropped.add(e.column)
                logger.warning(
                    f"External missing column \"{e.column}\" on \"{table}\" "
                    f"(attempt {attempt}/{self.max_attempts}). Dropping and retrying."
                )
                payload = drop_column(payload, e.column)

        raise RetryExhaustedError(
            f"Upsert failed after dropping columns: {', '.join(sorted(dropped))}",
            operation=operation.value,
            table=table,
            dropped_columns=sorted(dropped)
        )
