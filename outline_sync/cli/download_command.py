"""Download command: write remote collections to the local tree."""

import logging
from typing import List

from ..file_mapper.download_reconciler import DownloadReconciler
from ..file_mapper.models import CollectionConfig, SyncConfig
from ..outline_client.api_wrapper import APIWrapper
from ..outline_client.concurrency import ConcurrencyLimiter
from ..outline_client.errors import SyncError
from .base_command import BaseCommand
from .models import ExitCode

logger = logging.getLogger(__name__)


class DownloadCommand(BaseCommand):
    """Downloads every selected collection into its output directory.

    Collections are downloaded one after another. The first failing
    collection aborts the command; files it already wrote stay on disk.

    Example:
        >>> command = DownloadCommand(output_handler=OutputHandler(verbosity=1))
        >>> sys.exit(command.run(output_dir="./docs"))
    """

    name = "download"

    async def _execute(
        self,
        api: APIWrapper,
        limiter: ConcurrencyLimiter,
        config: SyncConfig,
        collections: List[CollectionConfig],
    ) -> ExitCode:
        reconciler = DownloadReconciler(api, limiter, config.behavior)

        for collection in collections:
            try:
                with self.output_handler.spinner(f"Downloading collection: {collection.name}"):
                    result = await reconciler.download_collection(collection)
            except SyncError:
                self.output_handler.error(f"Failed to download collection: {collection.name}")
                raise
            self.output_handler.print_download_summary(collection.name, result)

        self.output_handler.success("Download completed successfully!")
        return ExitCode.SUCCESS
