"""Upload reconciler: local directory tree -> remote documents.

Documents are read with LocalTreeReader (parents strictly before their
children) and each is created, updated, moved or skipped. A document whose
parent is new in this pass refers to it by the parent's index.md path; the
path is resolved to the remote ID the parent receives once it is created.

Uploads run concurrently under the shared ConcurrencyLimiter. A document
waits for its parent's outcome before taking a limiter slot, so a waiting
child never holds a slot its parent needs.
"""

import asyncio
import logging
import os
import re
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ..outline_client.api_wrapper import APIWrapper
from ..outline_client.concurrency import ConcurrencyLimiter
from ..outline_client.errors import DocumentNotFoundError, SyncError, TransferError
from ..outline_client.models import Document
from .attachment_transformer import (
    parse_relative_images,
    replace_image_reference,
    to_remote_references,
)
from .errors import ParentResolutionError
from .frontmatter_handler import FrontmatterHandler
from .local_tree_reader import LocalTreeReader
from .models import CollectionConfig, CollectionUploadResult, ImageUploadInfo, ParsedDocument

logger = logging.getLogger(__name__)

REMOTE_ID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE
)

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


def is_remote_id(reference: str) -> bool:
    """Return True if reference has the shape of a remote document ID."""
    return bool(REMOTE_ID_PATTERN.match(reference))


class UploadReconciler:
    """Pushes a collection's local documents to the remote store.

    Per document:
    - no remoteId: create it and record the new remoteId in its front matter
      (skipped when update_only is set)
    - remoteId: fetch the remote copy, move it when its parent or collection
      differs, update it when the text or title differs

    One document's failure does not stop its siblings. Failures are
    collected in the returned CollectionUploadResult.

    Example:
        >>> reconciler = UploadReconciler(api, limiter)
        >>> result = await reconciler.upload_collection(collection)
        >>> result.raise_for_errors()
    """

    def __init__(
        self,
        api: APIWrapper,
        limiter: ConcurrencyLimiter,
        reader: Optional[LocalTreeReader] = None,
    ):
        """Initialize the upload reconciler.

        Args:
            api: Remote document store client
            limiter: Shared limiter for remote calls
            reader: Local tree reader
        """
        self._api = api
        self._limiter = limiter
        self._reader = reader or LocalTreeReader()

    async def upload_collection(
        self,
        collection: CollectionConfig,
        update_only: bool = False,
    ) -> CollectionUploadResult:
        """Upload every document of a collection.

        Args:
            collection: Collection to upload
            update_only: Never create documents, only update existing ones

        Returns:
            CollectionUploadResult with tallies and per-document errors

        Raises:
            StructureError: If the local tree is missing an index.md
            ParseError: If a document's front matter is invalid
        """
        documents = self._reader.read_collection_files(collection)
        logger.info(f"Uploading {len(documents)} document(s) from {collection.name}")

        loop = asyncio.get_running_loop()
        # Local reference (file path, or a remoteId known before the pass)
        # -> remote ID the document ends up with. Each resolves exactly once.
        resolutions: Dict[str, asyncio.Future] = {}
        for document in documents:
            future = loop.create_future()
            resolutions[document.file_path] = future
            if document.metadata.remote_id:
                resolutions.setdefault(document.metadata.remote_id, future)

        result = CollectionUploadResult()
        await asyncio.gather(*(
            self._process(document, collection, update_only, resolutions, result)
            for document in documents
        ))

        logger.info(
            f"{collection.name}: Created {result.created}, Updated {result.updated}, "
            f"Skipped {result.skipped}, Errors {result.error_count}"
        )
        return result

    async def _process(
        self,
        document: ParsedDocument,
        collection: CollectionConfig,
        update_only: bool,
        resolutions: Dict[str, asyncio.Future],
        result: CollectionUploadResult,
    ) -> None:
        """Upload one document and publish its remote ID to its children."""
        own = resolutions[document.file_path]
        remote_id = document.metadata.remote_id
        try:
            if update_only and not remote_id:
                logger.debug(f"Skipping new document {document.file_path} (update only)")
                result.skipped += 1
                return

            parent_id = await self._resolve_parent(document, resolutions)
            async with self._limiter:
                status, remote_id = await self._upload_document(
                    document, collection, parent_id, update_only
                )

            if status == CREATED:
                result.created += 1
            elif status == UPDATED:
                result.updated += 1
            else:
                result.skipped += 1
        except SyncError as e:
            logger.error(f"Failed: {document.file_path}: {e}")
            result.errors.append((document.file_path, e))
        except Exception as e:
            logger.exception(f"Unexpected error uploading {document.file_path}")
            result.errors.append((document.file_path, e))
        finally:
            if not own.done():
                own.set_result(remote_id)

    async def _resolve_parent(
        self,
        document: ParsedDocument,
        resolutions: Dict[str, asyncio.Future],
    ) -> Optional[str]:
        """Map a document's parent reference to a remote ID.

        Raises:
            ParentResolutionError: If the parent has no remote ID in this pass
        """
        reference = document.parent_document_id
        if reference is None:
            return None

        future = resolutions.get(reference)
        if future is not None:
            parent_id = await future
        elif is_remote_id(reference):
            parent_id = reference
        else:
            parent_id = None

        if parent_id is None:
            raise ParentResolutionError(document.file_path, reference)
        return parent_id

    async def _upload_document(
        self,
        document: ParsedDocument,
        collection: CollectionConfig,
        parent_id: Optional[str],
        update_only: bool,
    ) -> Tuple[str, Optional[str]]:
        """Create, update or skip one document.

        Returns:
            (status, remote ID) where status is created, updated or skipped
        """
        remote = None
        if document.metadata.remote_id:
            try:
                remote = await self._api.fetch_document(document.metadata.remote_id)
            except DocumentNotFoundError:
                logger.warning(
                    f"Document {document.metadata.remote_id} of {document.file_path} "
                    f"no longer exists remotely"
                )

        if remote is None:
            if update_only:
                return SKIPPED, None
            return await self._create(document, collection, parent_id)
        return await self._update(document, remote, collection, parent_id)

    async def _create(
        self,
        document: ParsedDocument,
        collection: CollectionConfig,
        parent_id: Optional[str],
    ) -> Tuple[str, str]:
        images = parse_relative_images(document.content)
        text = to_remote_references(document.content, images)

        logger.info(f"Outline API: documents.create '{document.metadata.title}'")
        created = await self._api.create_document(
            title=document.metadata.title,
            text=text,
            collection_id=collection.id,
            parent_id=parent_id,
        )
        metadata = replace(
            document.metadata,
            remote_id=created.id,
            url_id=created.url_id or document.metadata.url_id,
        )
        FrontmatterHandler.write_file(document.file_path, document.content, metadata)

        new_images = _new_images(images)
        if not new_images:
            return CREATED, created.id

        try:
            text = await self._upload_images(text, new_images, created.id, document.file_path)
            final = await self._api.update_document(created.id, text=text)
        except SyncError as e:
            # The document exists with its original text; keep it that way
            logger.warning(f"Failed to process images for new document {document.file_path}: {e}")
            return CREATED, created.id

        FrontmatterHandler.write_file(document.file_path, final.text, metadata)
        return CREATED, created.id

    async def _update(
        self,
        document: ParsedDocument,
        remote: Document,
        collection: CollectionConfig,
        parent_id: Optional[str],
    ) -> Tuple[str, str]:
        moved = False
        if remote.parent_id != parent_id or remote.collection_id != collection.id:
            logger.info(f"Outline API: documents.move {remote.id} -> parent {parent_id}")
            await self._api.move_document(
                remote.id,
                collection_id=collection.id,
                parent_id=parent_id,
                index=document.relative_index,
            )
            moved = True

        images = parse_relative_images(document.content)
        text = to_remote_references(document.content, images)
        new_images = _new_images(images)
        if new_images:
            text = await self._upload_images(text, new_images, remote.id, document.file_path)

        if text.strip() == remote.text.strip() and document.metadata.title == remote.title:
            return (UPDATED if moved else SKIPPED), remote.id

        logger.info(f"Outline API: documents.update {remote.id}")
        updated = await self._api.update_document(
            remote.id, title=document.metadata.title, text=text
        )
        FrontmatterHandler.write_file(document.file_path, updated.text, document.metadata)
        return UPDATED, remote.id

    async def _upload_images(
        self,
        text: str,
        images: List[ImageUploadInfo],
        document_id: str,
        file_path: str,
    ) -> str:
        """Upload local images and point their references at the attachments.

        Raises:
            TransferError: If an image is missing or its upload fails
        """
        document_dir = os.path.dirname(file_path)
        for image in images:
            image_path = os.path.normpath(os.path.join(document_dir, image.relative_path))
            if not os.path.isfile(image_path):
                raise TransferError(image_path, "file not found", operation="attachments.create")
            url = await self._api.upload_attachment(document_id, image_path)
            logger.debug(f"Uploaded image {image.relative_path} as {url}")
            text = replace_image_reference(text, image, url)
        return text


def _new_images(images: List[ImageUploadInfo]) -> List[ImageUploadInfo]:
    return [image for image in images if not image.is_existing_attachment]
