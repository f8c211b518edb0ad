"""Local tree reader for collection directories.

Walks a collection's output directory and produces the ordered, flattened
list of documents the upload pass consumes. The directory convention is:

    collection/
        getting-started.md          top-level document
        guides/
            index.md                the "Guides" document itself
            install.md              child of Guides
            advanced/
                index.md            child of Guides, parent of tuning.md
                tuning.md

Every directory that (recursively) holds a document file must contain an
index.md; it is the conceptual parent of the other entries in that
directory. An index.md at the collection root is the parent of the
root-level documents.
"""

import logging
import os
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .errors import FilesystemError, StructureError
from .frontmatter_handler import FrontmatterHandler
from .models import CollectionConfig, ParsedDocument

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.md"
DOCUMENT_EXTENSION = ".md"


class LocalTreeReader:
    """Reads a collection directory into an ordered list of ParsedDocument.

    Ordering guarantees of the returned list:
    - Within one directory, documents are sorted by sidebar order
      ascending; documents without an order come last, by file name.
    - Every directory's own documents are listed before the contents of
      its subdirectories, so a parent always precedes its children.

    The reader is a pure function of the filesystem at call time.

    Example:
        >>> documents = LocalTreeReader().read_collection_files(collection)
        >>> [d.relative_path for d in documents]
        ['guides/index.md', 'getting-started.md', 'guides/install.md']
    """

    def read_collection_files(self, collection: CollectionConfig) -> List[ParsedDocument]:
        """Read every document of a collection.

        Args:
            collection: Collection whose output_directory is walked

        Returns:
            Flattened documents, parents before children

        Raises:
            StructureError: If a directory with documents lacks index.md
            ParseError: If a document's front matter is invalid
            FilesystemError: If a directory or file cannot be read
        """
        root = os.path.abspath(collection.output_directory)
        if not os.path.isdir(root):
            logger.info(f"Collection directory {root} does not exist - treating as empty")
            return []

        root_index = os.path.join(root, INDEX_FILENAME)
        if os.path.isfile(root_index):
            index_document = self._read_document(root_index, root, collection, None)
            return [index_document] + self._read_directory(
                root, root, collection, _parent_reference(index_document)
            )

        return self._read_directory(root, root, collection, None)

    def _read_directory(
        self,
        dir_path: str,
        root: str,
        collection: CollectionConfig,
        parent_reference: Optional[str],
    ) -> List[ParsedDocument]:
        """Read one directory level and recurse into its subdirectories."""
        try:
            entries = sorted(os.scandir(dir_path), key=lambda e: e.name)
        except OSError as e:
            raise FilesystemError(dir_path, 'list', str(e))

        siblings: List[ParsedDocument] = []
        subdirectories: List[Tuple[ParsedDocument, str]] = []

        for entry in entries:
            if entry.name.startswith('.'):
                continue
            # Already consumed by the caller as this level's parent
            if parent_reference is not None and entry.name == INDEX_FILENAME:
                continue

            if entry.is_dir():
                if not _contains_documents(entry.path):
                    logger.debug(f"Skipping {entry.path}: no documents")
                    continue
                index_path = os.path.join(entry.path, INDEX_FILENAME)
                if not os.path.isfile(index_path):
                    raise StructureError(index_path)
                index_document = self._read_document(
                    index_path, root, collection, parent_reference
                )
                siblings.append(index_document)
                subdirectories.append((index_document, entry.path))
            elif entry.is_file() and entry.name.endswith(DOCUMENT_EXTENSION):
                siblings.append(
                    self._read_document(entry.path, root, collection, parent_reference)
                )

        # sorted() is stable, so unordered documents keep file name order
        siblings.sort(key=_order_key)
        for index, document in enumerate(siblings):
            document.relative_index = index

        documents = list(siblings)
        subdirectories.sort(key=lambda item: item[0].relative_index)
        for index_document, subdirectory in subdirectories:
            documents.extend(
                self._read_directory(
                    subdirectory, root, collection, _parent_reference(index_document)
                )
            )
        return documents

    def _read_document(
        self,
        file_path: str,
        root: str,
        collection: CollectionConfig,
        parent_reference: Optional[str],
    ) -> ParsedDocument:
        metadata, body = FrontmatterHandler.read_file(file_path)
        try:
            modified = datetime.fromtimestamp(os.path.getmtime(file_path), tz=timezone.utc)
        except OSError as e:
            raise FilesystemError(file_path, 'stat', str(e))

        return ParsedDocument(
            metadata=metadata,
            content=body,
            file_path=file_path,
            relative_path=os.path.relpath(file_path, root),
            collection_id=collection.id,
            parent_document_id=parent_reference,
            last_modified_at=modified,
        )


def _parent_reference(index_document: ParsedDocument) -> str:
    """Remote ID of a directory's index.md, or its path until it has one."""
    return index_document.metadata.remote_id or index_document.file_path


def _order_key(document: ParsedDocument) -> Tuple[bool, float]:
    order = document.metadata.order
    return (order is None, order if order is not None else 0)


def _contains_documents(dir_path: str) -> bool:
    for current, dirs, files in os.walk(dir_path):
        dirs[:] = [d for d in dirs if not d.startswith('.')]
        if any(name.endswith(DOCUMENT_EXTENSION) for name in files):
            return True
    return False
