"""Upload command: push local collection trees to the remote store."""

import logging
from typing import List

from ..file_mapper.errors import FileMapperError
from ..file_mapper.models import CollectionConfig, CollectionUploadResult, SyncConfig
from ..file_mapper.upload_reconciler import UploadReconciler
from ..outline_client.api_wrapper import APIWrapper
from ..outline_client.concurrency import ConcurrencyLimiter
from .base_command import BaseCommand
from .models import ExitCode

logger = logging.getLogger(__name__)


class UploadCommand(BaseCommand):
    """Uploads every selected, writable collection.

    A failing document never stops the others; a collection whose local
    tree cannot be read is reported and the next collection is processed.
    If anything failed, the most recent document error decides the exit
    code.

    Example:
        >>> command = UploadCommand(update_only=True)
        >>> sys.exit(command.run(collections=["handbook"]))
    """

    name = "upload"

    def __init__(self, *args, update_only: bool = False, **kwargs):
        """Initialize the upload command.

        Args:
            update_only: Only update documents that already exist remotely
        """
        super().__init__(*args, **kwargs)
        self.update_only = update_only

    async def _execute(
        self,
        api: APIWrapper,
        limiter: ConcurrencyLimiter,
        config: SyncConfig,
        collections: List[CollectionConfig],
    ) -> ExitCode:
        reconciler = UploadReconciler(api, limiter)
        failed: List[CollectionUploadResult] = []
        unreadable = 0

        for collection in collections:
            if collection.sync_policy.read_only:
                logger.warning(f"Collection {collection.name} is read-only - skipping upload")
                self.output_handler.warning(f"Skipping read-only collection {collection.name}")
                continue

            try:
                with self.output_handler.spinner(f"Processing collection: {collection.name}"):
                    result = await reconciler.upload_collection(collection, self.update_only)
            except FileMapperError as e:
                logger.error(f"Cannot read {collection.output_directory}: {e}")
                self.output_handler.error(f"{collection.name}: {e}")
                unreadable += 1
                continue

            self.output_handler.print_upload_summary(collection.name, result)
            if result.failed:
                failed.append(result)

        if failed:
            failed[-1].raise_for_errors()
        if unreadable:
            return ExitCode.GENERAL_ERROR

        self.output_handler.success("Upload completed successfully!")
        return ExitCode.SUCCESS
