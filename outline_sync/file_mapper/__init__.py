"""File mapper library for bidirectional Outline sync.

This package maps between remote document hierarchies and local markdown
files with YAML front matter: reading and writing the local tree, rewriting
embedded image references, and reconciling both directions.
"""

from .models import (
    DocumentFrontmatter,
    ParsedDocument,
    CollectionConfig,
    SyncPolicy,
    CollectionEntry,
    BehaviorConfig,
    SyncConfig,
    AttachmentInfo,
    ImageUploadInfo,
    DownloadResult,
    CollectionUploadResult,
)
from .errors import (
    FileMapperError,
    FilesystemError,
    ConfigError,
    ParseError,
    StructureError,
    ParentResolutionError,
)
from .config_loader import ConfigLoader
from .filesafe_converter import FilesafeConverter
from .frontmatter_handler import FrontmatterHandler
from .local_tree_reader import LocalTreeReader
from .hierarchy_builder import HierarchyBuilder
from .garbage_collector import GarbageCollector
from .download_reconciler import DownloadReconciler
from .upload_reconciler import UploadReconciler

__all__ = [
    'DocumentFrontmatter',
    'ParsedDocument',
    'CollectionConfig',
    'SyncPolicy',
    'CollectionEntry',
    'BehaviorConfig',
    'SyncConfig',
    'AttachmentInfo',
    'ImageUploadInfo',
    'DownloadResult',
    'CollectionUploadResult',
    'FileMapperError',
    'FilesystemError',
    'ConfigError',
    'ParseError',
    'StructureError',
    'ParentResolutionError',
    'ConfigLoader',
    'FilesafeConverter',
    'FrontmatterHandler',
    'LocalTreeReader',
    'HierarchyBuilder',
    'GarbageCollector',
    'DownloadReconciler',
    'UploadReconciler',
]
