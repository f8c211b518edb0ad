"""Typed exception hierarchy for file mapper errors.

This module defines all custom exceptions used by the local side of the sync
engine. All exceptions inherit from FileMapperError and carry the path or
reference that caused them so the message alone is enough to debug.
"""

from typing import Optional

from ..outline_client.errors import SyncError


class FileMapperError(SyncError):
    """Base exception for all file mapper errors."""
    pass


class FilesystemError(FileMapperError):
    """Raised when filesystem operations fail (read, write, permissions, etc)."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Filesystem operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class ConfigError(FileMapperError):
    """Raised when configuration validation fails."""

    def __init__(self, message: str, config_field: Optional[str] = None):
        if config_field:
            full_message = f"Configuration error in field '{config_field}': {message}"
        else:
            full_message = f"Configuration error: {message}"
        super().__init__(full_message)
        self.config_field = config_field
        self.original_message = message


class ParseError(FileMapperError):
    """Raised when front matter is malformed or violates the schema."""

    def __init__(self, file_path: str, message: str):
        super().__init__(f"Failed to parse document file {file_path}: {message}")
        self.file_path = file_path
        self.message = message


class StructureError(FileMapperError):
    """Raised when a directory holding documents has no index.md."""

    def __init__(self, index_path: str):
        super().__init__(
            f"Index file {index_path} not found. "
            f"All subdirectories with md files must have an index.md file."
        )
        self.index_path = index_path


class ParentResolutionError(FileMapperError):
    """Raised when a local parent reference has no remote ID during upload."""

    def __init__(self, file_path: str, parent_reference: str):
        super().__init__(
            f"Parent document not found for {file_path}: "
            f"{parent_reference} has no remote ID in this pass"
        )
        self.file_path = file_path
        self.parent_reference = parent_reference
