"""
Pydantic schemas for the external sync endpoint
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Dict, Any, Optional, Union

from sims.services.replication import ChangeRequest, SyncOperation


class SyncRequest(BaseModel):
    """Change notification for one table, as sent by the editing screens"""
    operation: SyncOperation
    table: str = Field(..., min_length=1, max_length=63)
    data: Optional[Union[Dict[str, Any], List[Dict[str, Any]]]] = None
    id: Optional[Union[str, int]] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "operation": "UPDATE",
                "table": "students",
                "data": {
                    "id": "7f9c0a52-3c1e-4c55-9a0e-0f3e2d6f4b11",
                    "student_id": "STU25010042",
                    "name": "Jane Doe",
                    "email": "jane.doe@example.edu",
                    "semester": 2,
                    "status": "active"
                }
            }
        }
    )

    def to_change_request(self) -> ChangeRequest:
        """Keep only the fields the operation uses; extra ones are ignored."""
        if self.operation in (SyncOperation.INSERT, SyncOperation.UPDATE):
            return ChangeRequest(self.operation, self.table, row=self.data)
        if self.operation == SyncOperation.DELETE:
            return ChangeRequest(self.operation, self.table, row_id=self.id)
        return ChangeRequest(self.operation, self.table)


class SyncResponse(BaseModel):
    success: bool = True
    result: Dict[str, Any]


class SyncErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
