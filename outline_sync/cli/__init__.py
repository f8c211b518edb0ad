"""Command-line interface for Outline sync.

This package provides the `outline-sync` CLI tool with download and upload
commands, wiring configuration, collection selection and the reconcilers
together with Rich progress output and meaningful exit codes.
"""

from .download_command import DownloadCommand
from .upload_command import UploadCommand
from .collection_filter import select_collections
from .models import ExitCode
from .output import OutputHandler
from .errors import CLIError, ConfigNotFoundError

__all__ = [
    'DownloadCommand',
    'UploadCommand',
    'select_collections',
    'ExitCode',
    'OutputHandler',
    'CLIError',
    'ConfigNotFoundError',
]
