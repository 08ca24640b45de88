"""Typed errors raised by the scheduling stores.

Each error carries an HTTP status classification so the API layer can render
it without inspecting the message.
"""

from typing import Any

from fastapi import status


class SchedulerError(Exception):
    """Base class for all business and storage errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Any = None, status_code: int | None = None) -> None:
        self.message = message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    @property
    def name(self) -> str:
        return self.__class__.__name__

    def to_dict(self, include_details: bool = True) -> dict[str, Any]:
        return {
            'name': self.name,
            'message': self.message,
            'statusCode': self.status_code,
            'details': self.details if include_details else None,
        }


class NotFoundError(SchedulerError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SchedulerError):
    """Uniqueness violation or booking time overlap."""

    status_code = status.HTTP_409_CONFLICT


class InvalidArgumentError(SchedulerError):
    """Input rejected by a business rule."""

    status_code = status.HTTP_400_BAD_REQUEST


class StorageError(SchedulerError):
    """Base for database failures. ``details`` holds the driver message and is never rendered in production."""


class StorageTransientError(StorageError):
    """Storage failure that may succeed on retry (timeouts, deadlocks, DDL races)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class StorageFatalError(StorageError):
    """Any other storage failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
