"""Data models for file mapper.

This module defines the data models used by the local tree reader, the
reconcilers and the configuration loader. All models use dataclasses; the
front matter model validates its own schema so malformed metadata fails
fast instead of leaking missing fields downstream.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class DocumentFrontmatter:
    """Structured metadata block at the top of every document file.

    Attributes:
        title: Document title (always present)
        description: Optional description, preserved across downloads
        order: Sidebar position among siblings (serialized as sidebar.order)
        remote_id: Remote document ID; None means not yet created remotely
        url_id: Remote short URL identifier
    """
    title: str
    description: Optional[str] = None
    order: Optional[int] = None
    remote_id: Optional[str] = None
    url_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DocumentFrontmatter":
        """Validate a decoded YAML mapping and build the front matter.

        Fields outside the schema are dropped.

        Raises:
            ValueError: If title is missing or a field has the wrong type
        """
        title = data.get('title')
        if not isinstance(title, str):
            raise ValueError("'title' is required and must be a string")

        sidebar = data.get('sidebar')
        order = None
        if sidebar is not None:
            if not isinstance(sidebar, dict):
                raise ValueError("'sidebar' must be a mapping")
            order = sidebar.get('order')
            # bool is an int subclass
            if order is not None and (isinstance(order, bool) or not isinstance(order, (int, float))):
                raise ValueError("'sidebar.order' must be a number")

        return cls(
            title=title,
            description=_optional_str(data, 'description'),
            order=order,
            remote_id=_optional_str(data, 'remoteId'),
            url_id=_optional_str(data, 'urlId'),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize in canonical key order, omitting unset fields."""
        result: Dict[str, Any] = {'title': self.title}
        if self.description is not None:
            result['description'] = self.description
        if self.order is not None:
            result['sidebar'] = {'order': self.order}
        if self.remote_id is not None:
            result['remoteId'] = self.remote_id
        if self.url_id is not None:
            result['urlId'] = self.url_id
        return result


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value


@dataclass
class ParsedDocument:
    """A local document file as seen by one traversal of the tree.

    Attributes:
        metadata: Validated front matter
        content: Body text (without front matter)
        file_path: Absolute path of the file
        relative_path: Path relative to the collection directory
        collection_id: Owning collection
        parent_document_id: Remote ID of the parent, or the absolute path of
            the parent's index.md when the parent has no remote ID yet
        relative_index: Dense 0-based position among siblings
        last_modified_at: File modification time
    """
    metadata: DocumentFrontmatter
    content: str
    file_path: str
    relative_path: str
    collection_id: str
    parent_document_id: Optional[str] = None
    relative_index: int = 0
    last_modified_at: Optional[datetime] = None


@dataclass
class SyncPolicy:
    """Per-collection switches.

    Attributes:
        enabled: Collection takes part in download and upload
        read_only: Collection is downloaded but never uploaded
    """
    enabled: bool = True
    read_only: bool = False


@dataclass
class CollectionConfig:
    """A remote collection resolved against the configuration.

    Attributes:
        id: Remote collection ID
        url_id: Short URL identifier
        name: Display name
        description: Optional description
        output_directory: Absolute local directory for this collection
        sync_policy: Per-collection switches
    """
    id: str
    url_id: str
    name: str
    description: Optional[str]
    output_directory: str
    sync_policy: SyncPolicy = field(default_factory=SyncPolicy)


@dataclass
class CollectionEntry:
    """One `collections:` entry of the configuration file."""
    url_id: str
    directory: Optional[str] = None
    sync: SyncPolicy = field(default_factory=SyncPolicy)


@dataclass
class BehaviorConfig:
    """Download/upload behavior switches.

    Attributes:
        skip_metadata: Write bodies without front matter on download
        include_images: Download embedded image attachments into images/
        cleanup_after_download: Delete local files not written by a download
        concurrency: Maximum simultaneous remote requests
    """
    skip_metadata: bool = False
    include_images: bool = False
    cleanup_after_download: bool = True
    concurrency: int = 10


@dataclass
class SyncConfig:
    """Top-level configuration loaded from outline-sync.yaml."""
    api_url: str = "https://app.getoutline.com/api"
    output_dir: str = "docs"
    collections: List[CollectionEntry] = field(default_factory=list)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)


@dataclass
class AttachmentInfo:
    """Remote attachment reference found in a document body.

    Attributes:
        id: Attachment ID
        caption: Image alt text
        original_reference: Link target as it appears in the body,
            annotations included
        annotations: Trailing size/alignment annotation (e.g. ' =300x200')
        local_path: Path of the downloaded file, once known
    """
    id: str
    caption: str
    original_reference: str
    annotations: Optional[str] = None
    local_path: Optional[str] = None


@dataclass
class ImageUploadInfo:
    """Relative image reference found in a local document body.

    Attributes:
        caption: Image alt text
        relative_path: Path after the leading './'
        is_existing_attachment: Filename (sans extension) is an attachment UUID
        attachment_id: That UUID when is_existing_attachment is set
        annotations: Trailing size/alignment annotation
    """
    caption: str
    relative_path: str
    is_existing_attachment: bool
    attachment_id: Optional[str] = None
    annotations: Optional[str] = None


@dataclass
class DownloadResult:
    """Outcome of downloading one collection."""
    written_count: int = 0
    attachments_downloaded: int = 0
    deleted_count: int = 0


@dataclass
class CollectionUploadResult:
    """Running tallies of one collection's upload pass."""
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: List[Tuple[str, Exception]] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def failed(self) -> bool:
        return bool(self.errors)

    def raise_for_errors(self) -> None:
        """Re-raise the most recent error of the pass, if any."""
        if self.errors:
            raise self.errors[-1][1]
