"""Data models for objects returned by the Outline API.

All models use dataclasses and are built from the JSON payloads of the
RPC-style endpoints via their from_api() constructors.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Collection:
    """A top-level grouping of documents in the remote store.

    Attributes:
        id: Collection UUID
        url_id: Short URL identifier used in configuration files
        name: Display name
        description: Optional description text
    """
    id: str
    url_id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Collection":
        return cls(
            id=data["id"],
            url_id=data.get("urlId", ""),
            name=data.get("name", ""),
            description=data.get("description") or None,
        )


@dataclass
class Document:
    """A single remote document.

    Attributes:
        id: Document UUID
        title: Document title
        text: Markdown body
        collection_id: Owning collection
        url_id: Short URL identifier
        description: Optional summary (not all servers provide one)
        parent_id: Parent document UUID, None at collection root
    """
    id: str
    title: str
    text: str
    collection_id: str
    url_id: Optional[str] = None
    description: Optional[str] = None
    parent_id: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Document":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            text=data.get("text") or "",
            collection_id=data.get("collectionId", ""),
            url_id=data.get("urlId") or None,
            description=data.get("description") or None,
            parent_id=data.get("parentDocumentId") or None,
        )


@dataclass
class StructureNode:
    """Lightweight node of a collection's navigation tree (id and title only)."""
    id: str
    title: str
    children: List["StructureNode"] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "StructureNode":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            children=[cls.from_api(child) for child in data.get("children") or []],
        )


@dataclass
class DocumentNode:
    """A fully fetched document together with its fetched children."""
    document: Document
    children: List["DocumentNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.document.id

    @property
    def title(self) -> str:
        return self.document.title
