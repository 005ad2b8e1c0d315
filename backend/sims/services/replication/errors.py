"""
Exception hierarchy for replication to the external database.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional


class ReplicationError(Exception):
    """Base exception for replication errors with metadata for API responses."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and responses."""
        data = {
            'message': self.message,
            'type': type(self).__name__,
            'details': self.details,
            'timestamp': self.timestamp.isoformat(),
        }
        if self.original_exception is not None:
            data['original_error'] = str(self.original_exception)
        return data


class ConfigurationError(ReplicationError):
    """Store credentials are missing; nothing was attempted."""
    pass


class InvalidChangeRequestError(ReplicationError):
    """A change request does not carry the fields its operation needs."""
    pass


class StoreError(ReplicationError):
    """A relational store rejected a call or could not be reached."""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        code: Optional[str] = None,
        status: Optional[int] = None,
        original_exception: Optional[Exception] = None
    ):
        details = {'table': table, 'code': code, 'status': status}
        super().__init__(
            message,
            details={k: v for k, v in details.items() if v is not None},
            original_exception=original_exception
        )
        self.table = table
        self.code = code
        self.status = status


class MissingColumnError(StoreError):
    """The store's table has no column by this name."""

    def __init__(self, column: str, table: Optional[str] = None, **kwargs):
        message = kwargs.pop('message', None) or f"Column '{column}' does not exist on '{table}'"
        super().__init__(message, table=table, **kwargs)
        self.column = column
        self.details['column'] = column


class ReplicationFailedError(ReplicationError):
    """A replication call failed and was not retried."""

    def __init__(
        self,
        message: str,
        operation: str,
        table: str,
        dropped_columns: Optional[List[str]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.operation = operation
        self.table = table
        self.dropped_columns = list(dropped_columns or [])
        details = {
            'operation': operation,
            'table': table,
            'dropped_columns': self.dropped_columns,
        }
        if isinstance(original_exception, ReplicationError):
            details['cause'] = original_exception.details
        super().__init__(message, details=details, original_exception=original_exception)


class RetryExhaustedError(ReplicationFailedError):
    """Upsert kept failing after the maximum number of column drops."""
    pass
