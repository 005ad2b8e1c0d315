"""
Value types passed to and returned from the replication gateway.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Union

from .errors import InvalidChangeRequestError

Row = Mapping[str, Any]
RowPayload = Union[Row, Sequence[Row]]

# table name -> ordered columns believed to exist on the external database
ColumnAllowList = Mapping[str, Sequence[str]]


class SyncOperation(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    SYNC_ALL = "SYNC_ALL"


@dataclass(frozen=True)
class ChangeRequest:
    """One change to mirror on the external database. Consumed once."""

    operation: SyncOperation
    table: str
    row: Optional[RowPayload] = None
    row_id: Optional[Union[str, int]] = None

    def __post_init__(self):
        if not isinstance(self.operation, SyncOperation):
            try:
                object.__setattr__(self, "operation", SyncOperation(self.operation))
            except ValueError:
                raise InvalidChangeRequestError(f"Unknown operation: {self.operation}")

        if not self.table:
            raise InvalidChangeRequestError("Table name is required")

        writes_row = self.operation in (SyncOperation.INSERT, SyncOperation.UPDATE)
        if writes_row and self.row is None:
            raise InvalidChangeRequestError(f"{self.operation.value} requires row data")
        if not writes_row and self.row is not None:
            raise InvalidChangeRequestError(f"{self.operation.value} does not take row data")

        if self.operation == SyncOperation.DELETE and self.row_id is None:
            raise InvalidChangeRequestError("DELETE requires a row id")
        if self.operation != SyncOperation.DELETE and self.row_id is not None:
            raise InvalidChangeRequestError(f"{self.operation.value} does not take a row id")

    def rows(self) -> List[Dict[str, Any]]:
        """Row payload as a list of plain dicts."""
        if self.row is None:
            return []
        if isinstance(self.row, Mapping):
            return [dict(self.row)]
        return [dict(item) for item in self.row]


@dataclass
class ReplicationResult:
    operation: SyncOperation
    table: str
    applied_row_count: int = 0
    dropped_columns: Set[str] = field(default_factory=set)
    deleted_id: Optional[Union[str, int]] = None
    batches: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "operation": self.operation.value,
            "table": self.table,
            "applied_row_count": self.applied_row_count,
            "dropped_columns": sorted(self.dropped_columns),
            "batches": self.batches,
        }
        if self.operation == SyncOperation.DELETE:
            data["deleted"] = True
            data["deleted_id"] = self.deleted_id
        return data
