"""Download reconciler: remote document tree -> local directory tree.

A document with children becomes `<slug>/index.md` and its children are
written inside `<slug>/`; a leaf document becomes `<slug>.md`. After the
tree is written, every path under the collection directory that this pass
did not write is swept by the GarbageCollector.
"""

import glob
import logging
import os
from typing import Dict, List, Optional, Set

from ..outline_client.api_wrapper import APIWrapper
from ..outline_client.concurrency import ConcurrencyLimiter
from ..outline_client.errors import SyncError
from ..outline_client.models import DocumentNode
from .attachment_transformer import parse_attachments, to_local_paths
from .filesafe_converter import FilesafeConverter
from .frontmatter_handler import FrontmatterHandler
from .garbage_collector import GarbageCollector
from .hierarchy_builder import HierarchyBuilder
from .local_tree_reader import INDEX_FILENAME, LocalTreeReader
from .models import (
    BehaviorConfig,
    CollectionConfig,
    DocumentFrontmatter,
    DownloadResult,
)

logger = logging.getLogger(__name__)

IMAGES_DIRNAME = "images"


class _DownloadPass:
    """Mutable state of one collection download.

    Attributes:
        written_paths: Absolute paths written (or kept) during the pass
        existing: Previously recorded front matter by remote ID
        next_order: Collection-wide sidebar order counter
        attachments_downloaded: Attachments fetched from the remote store
    """

    def __init__(self, existing: Dict[str, DocumentFrontmatter]):
        self.written_paths: Set[str] = set()
        self.existing = existing
        self.next_order = 1
        self.attachments_downloaded = 0


class DownloadReconciler:
    """Writes a collection's remote hierarchy to its output directory.

    Any remote or filesystem failure aborts the collection. Files already
    written in that pass are left in place.

    Example:
        >>> reconciler = DownloadReconciler(api, limiter, behavior)
        >>> result = await reconciler.download_collection(collection)
        >>> print(f"Wrote {result.written_count} document(s)")
    """

    def __init__(
        self,
        api: APIWrapper,
        limiter: ConcurrencyLimiter,
        behavior: Optional[BehaviorConfig] = None,
        reader: Optional[LocalTreeReader] = None,
    ):
        """Initialize the download reconciler.

        Args:
            api: Remote document store client
            limiter: Shared limiter for remote calls
            behavior: Metadata, image and cleanup switches
            reader: Local tree reader used for the description pre-pass
        """
        self._api = api
        self._limiter = limiter
        self._behavior = behavior or BehaviorConfig()
        self._reader = reader or LocalTreeReader()
        self._hierarchy_builder = HierarchyBuilder(api, limiter)

    async def download_collection(self, collection: CollectionConfig) -> DownloadResult:
        """Download one collection into collection.output_directory.

        Args:
            collection: Collection to download

        Returns:
            DownloadResult with written, downloaded and deleted counts

        Raises:
            RemoteOperationError: If fetching any document or attachment fails
            FilesystemError: If a file cannot be written
        """
        root = os.path.abspath(collection.output_directory)
        logger.info(f"Downloading collection {collection.name} into {root}")

        state = _DownloadPass(self._index_existing(collection))
        nodes = await self._hierarchy_builder.build_hierarchy(collection.id)

        written = await self._write_level(nodes, root, state)
        result = DownloadResult(
            written_count=written,
            attachments_downloaded=state.attachments_downloaded,
        )

        if self._behavior.cleanup_after_download and state.written_paths:
            result.deleted_count = GarbageCollector.cleanup(root, state.written_paths)
            if result.deleted_count:
                logger.info(
                    f"Cleaned up {result.deleted_count} unused path(s) from {collection.name}"
                )

        return result

    def _index_existing(self, collection: CollectionConfig) -> Dict[str, DocumentFrontmatter]:
        """Map remote ID -> front matter of the files already on disk.

        An unreadable tree (no front matter, missing index.md, ...) only
        means there is nothing to preserve.
        """
        try:
            documents = self._reader.read_collection_files(collection)
        except SyncError as e:
            logger.debug(f"No existing metadata recovered for {collection.name}: {e}")
            return {}
        return {
            doc.metadata.remote_id: doc.metadata
            for doc in documents
            if doc.metadata.remote_id
        }

    async def _write_level(
        self,
        nodes: List[DocumentNode],
        parent_dir: str,
        state: _DownloadPass,
    ) -> int:
        """Write sibling nodes (and their subtrees) into parent_dir."""
        written = 0
        # A leaf slugged "index" must not take the directory document's file
        used_names: Set[str] = {INDEX_FILENAME}
        for node in nodes:
            slug = FilesafeConverter.title_to_slug(node.title)
            name = _unique_name(slug, bool(node.children), used_names)
            written += await self._write_node(node, parent_dir, name, state)
        return written

    async def _write_node(
        self,
        node: DocumentNode,
        parent_dir: str,
        name: str,
        state: _DownloadPass,
    ) -> int:
        document = node.document
        if node.children:
            node_dir = os.path.join(parent_dir, name)
            file_path = os.path.join(node_dir, INDEX_FILENAME)
        else:
            node_dir = None
            file_path = os.path.join(parent_dir, f"{name}.md")

        metadata = None
        if not self._behavior.skip_metadata:
            previous = state.existing.get(document.id)
            metadata = DocumentFrontmatter(
                title=document.title,
                description=document.description or (previous.description if previous else None),
                order=state.next_order,
                remote_id=document.id,
                url_id=document.url_id,
            )
        state.next_order += 1

        body = document.text
        if self._behavior.include_images:
            body = await self._localize_images(body, os.path.dirname(file_path), state)

        FrontmatterHandler.write_file(file_path, body, metadata)
        state.written_paths.add(file_path)
        if node_dir is not None:
            state.written_paths.add(node_dir)

        written = 1
        if node_dir is not None:
            written += await self._write_level(node.children, node_dir, state)
        return written

    async def _localize_images(self, body: str, document_dir: str, state: _DownloadPass) -> str:
        """Fetch referenced attachments and point the body at the local copies."""
        attachments = parse_attachments(body)
        if not attachments:
            return body

        image_dir = os.path.join(document_dir, IMAGES_DIRNAME)
        local_paths: Dict[str, str] = {}
        for attachment in attachments:
            if attachment.id not in local_paths:
                local_paths[attachment.id] = await self._materialize(attachment.id, image_dir, state)
            attachment.local_path = local_paths[attachment.id]
            state.written_paths.add(attachment.local_path)

        state.written_paths.add(image_dir)
        return to_local_paths(body, attachments, document_dir)

    async def _materialize(self, attachment_id: str, image_dir: str, state: _DownloadPass) -> str:
        """Return the local file of an attachment, downloading it if needed."""
        existing = sorted(glob.glob(os.path.join(glob.escape(image_dir), f"{attachment_id}.*")))
        if existing:
            logger.debug(f"Reusing downloaded attachment {existing[0]}")
            return os.path.abspath(existing[0])

        logger.info(f"Outline API: attachments.redirect {attachment_id}")
        path = await self._limiter.run(
            self._api.download_attachment_to_directory, attachment_id, image_dir
        )
        state.attachments_downloaded += 1
        return path


def _unique_name(slug: str, is_directory: bool, used: Set[str]) -> str:
    """Disambiguate a sibling slug with -2, -3, ... suffixes."""
    suffix = '/' if is_directory else '.md'
    name = slug
    counter = 2
    while f"{name}{suffix}" in used:
        name = f"{slug}-{counter}"
        counter += 1
    if name != slug:
        logger.warning(f"Slug '{slug}' already used by a sibling, writing as '{name}'")
    used.add(f"{name}{suffix}")
    return name
