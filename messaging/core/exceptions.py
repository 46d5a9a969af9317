"""
Error taxonomy for the messaging service.

Every error carries a stable machine-readable ``code``; the HTTP layer maps
codes to status codes and never relies on the message text.
"""
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base exception for the messaging service."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class Unauthenticated(LedgerError):
    """No valid caller identity was supplied."""

    code = "UNAUTHENTICATED"
    status_code = 401


class InvalidArgument(LedgerError):
    """Missing or malformed input."""

    code = "INVALID_ARGUMENT"
    status_code = 400


class NotFound(LedgerError):
    """A referenced user or listing does not exist."""

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, identifier: str):
        message = f"{resource} with identifier '{identifier}' not found"
        super().__init__(message, {"resource": resource, "identifier": identifier})


class StorageFailure(LedgerError):
    """The message store is unavailable or an operation failed."""

    code = "STORAGE_FAILURE"
    status_code = 503
