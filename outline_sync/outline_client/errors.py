"""Typed exception hierarchy for remote document store errors.

This module defines the exceptions raised by the Outline client library.
All exceptions inherit from SyncError so callers can catch any
application-level failure with a single except clause, while the
RemoteOperationError branch groups every failed remote call.
"""

from typing import Optional


class SyncError(Exception):
    """Base exception for all outline-sync errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class OutlineError(SyncError):
    """Base exception for all Outline-related errors."""
    pass


class RemoteOperationError(OutlineError):
    """Raised when a create/update/move/fetch/upload call fails."""

    def __init__(self, operation: str, message: str):
        super().__init__(f"Remote operation '{operation}' failed: {message}")
        self.operation = operation
        self.message = message


class InvalidCredentialsError(RemoteOperationError):
    """Raised when the API token is missing or rejected."""

    def __init__(self, endpoint: str, operation: str = "authenticate"):
        super().__init__(
            operation,
            f"API token is missing or invalid (endpoint: {endpoint})"
        )
        self.endpoint = endpoint


class DocumentNotFoundError(RemoteOperationError):
    """Raised when a requested document does not exist remotely."""

    def __init__(self, document_id: str):
        super().__init__("documents.info", f"Document {document_id} not found")
        self.document_id = document_id


class APIUnreachableError(RemoteOperationError):
    """Raised when the API cannot be reached (timeout, DNS, refused)."""

    def __init__(self, endpoint: str, operation: str = "connect"):
        super().__init__(operation, f"API is not available at {endpoint}")
        self.endpoint = endpoint


class APIAccessError(RemoteOperationError):
    """Raised when the API rejects a call or rate limiting persists."""

    def __init__(
        self,
        message: str = "Outline API failure (after 3 retries)",
        operation: str = "request",
        status_code: Optional[int] = None,
    ):
        super().__init__(operation, message)
        self.status_code = status_code


class TransferError(RemoteOperationError):
    """Raised when an attachment upload or download fails."""

    def __init__(self, path: str, reason: str, operation: str = "transfer"):
        super().__init__(operation, f"{path}: {reason}")
        self.path = path
        self.reason = reason
