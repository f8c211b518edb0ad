"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError and carry enough context in their
message to act on without a traceback.
"""

from ..outline_client.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigNotFoundError(CLIError):
    """Raised when an explicitly requested configuration file does not exist."""

    def __init__(self, config_path: str):
        super().__init__(
            f"Configuration file not found at {config_path}"
        )
        self.config_path = config_path
