"""Outline client library for bidirectional sync.

This package provides async Python abstractions over the Outline REST API,
enabling clean and type-safe interactions with collections, documents and
attachments.
"""

from .api_wrapper import APIWrapper
from .auth import Authenticator, Credentials
from .concurrency import ConcurrencyLimiter
from .errors import (
    SyncError,
    OutlineError,
    RemoteOperationError,
    InvalidCredentialsError,
    DocumentNotFoundError,
    APIUnreachableError,
    APIAccessError,
    TransferError,
)
from .models import Collection, Document, DocumentNode, StructureNode

__all__ = [
    "APIWrapper",
    "Authenticator",
    "Credentials",
    "ConcurrencyLimiter",
    "SyncError",
    "OutlineError",
    "RemoteOperationError",
    "InvalidCredentialsError",
    "DocumentNotFoundError",
    "APIUnreachableError",
    "APIAccessError",
    "TransferError",
    "Collection",
    "Document",
    "DocumentNode",
    "StructureNode",
]
