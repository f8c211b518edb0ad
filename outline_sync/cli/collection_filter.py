"""Selection of the remote collections a command operates on."""

import logging
import os
from typing import Dict, List, Optional, Sequence

from ..file_mapper.errors import ConfigError
from ..file_mapper.filesafe_converter import FilesafeConverter
from ..file_mapper.models import CollectionConfig, CollectionEntry, SyncConfig, SyncPolicy
from ..outline_client.models import Collection

logger = logging.getLogger(__name__)


def select_collections(
    remote_collections: Sequence[Collection],
    config: SyncConfig,
    output_dir: Optional[str] = None,
    only: Optional[Sequence[str]] = None,
) -> List[CollectionConfig]:
    """Resolve the configured collections against the remote ones.

    With no `collections:` entries every remote collection is selected.
    Collections disabled with `sync.enabled: false` are dropped.

    Args:
        remote_collections: Collections visible to the API token
        config: Loaded configuration
        output_dir: Root directory override (defaults to config.output_dir)
        only: URL IDs to narrow the selection to (the --collections option)

    Returns:
        CollectionConfig per selected collection, in remote order

    Raises:
        ConfigError: If a configured URL ID does not exist remotely
    """
    remote_url_ids = {collection.url_id for collection in remote_collections}
    missing = [
        entry.url_id for entry in config.collections
        if entry.url_id not in remote_url_ids
    ]
    if missing:
        raise ConfigError(
            f"Collection not found in Outline: {', '.join(missing)}", 'collections'
        )

    entries: Dict[str, CollectionEntry] = {entry.url_id: entry for entry in config.collections}
    root = os.path.abspath(output_dir or config.output_dir)

    selected = []
    for collection in remote_collections:
        entry = entries.get(collection.url_id)
        if config.collections and entry is None:
            continue
        if only and collection.url_id not in only:
            continue
        if entry is not None and not entry.sync.enabled:
            logger.info(f"Collection {collection.name} is disabled - skipping")
            continue

        directory = entry.directory if entry else None
        if not directory:
            directory = FilesafeConverter.title_to_slug(collection.name)
        selected.append(CollectionConfig(
            id=collection.id,
            url_id=collection.url_id,
            name=collection.name,
            description=collection.description,
            output_directory=os.path.join(root, directory),
            sync_policy=entry.sync if entry else SyncPolicy(),
        ))

    return selected
