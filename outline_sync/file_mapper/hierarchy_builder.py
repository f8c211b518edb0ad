"""Hierarchy builder for fetching a collection's document tree.

The collection structure endpoint returns only IDs and titles. This module
fetches every document's full content and mirrors the structure as a tree
of DocumentNode, keeping the remote sibling order.
"""

import asyncio
import logging
from typing import List

from ..outline_client.api_wrapper import APIWrapper
from ..outline_client.concurrency import ConcurrencyLimiter
from ..outline_client.models import DocumentNode, StructureNode

logger = logging.getLogger(__name__)


class HierarchyBuilder:
    """Builds fully fetched document trees for a collection.

    Every document fetch runs under the shared ConcurrencyLimiter, so the
    number of simultaneous requests stays bounded however wide or deep the
    tree is. Fetches of siblings and of whole subtrees proceed concurrently.

    Example:
        >>> builder = HierarchyBuilder(api, ConcurrencyLimiter(10))
        >>> roots = await builder.build_hierarchy(collection.id)
        >>> print(f"Collection has {len(roots)} top-level documents")
    """

    def __init__(self, api: APIWrapper, limiter: ConcurrencyLimiter):
        """Initialize the hierarchy builder.

        Args:
            api: Remote document store client
            limiter: Limiter bounding simultaneous document fetches
        """
        self._api = api
        self._limiter = limiter

    async def build_hierarchy(self, collection_id: str) -> List[DocumentNode]:
        """Fetch the complete document tree of a collection.

        Args:
            collection_id: Remote collection ID

        Returns:
            Top-level DocumentNodes in remote order, children populated

        Raises:
            RemoteOperationError: If the structure or any document fetch fails
        """
        logger.info(f"Outline API: collections.documents {collection_id}")
        structure = await self._limiter.run(
            self._api.fetch_collection_structure, collection_id
        )
        nodes = await self._build_nodes(structure)
        logger.debug(f"Fetched {_count(nodes)} document(s) for collection {collection_id}")
        return nodes

    async def _build_nodes(self, structure: List[StructureNode]) -> List[DocumentNode]:
        # gather preserves argument order, so remote sibling order is kept
        return list(await asyncio.gather(*(self._build_node(node) for node in structure)))

    async def _build_node(self, node: StructureNode) -> DocumentNode:
        document = await self._limiter.run(self._api.fetch_document, node.id)
        children = await self._build_nodes(node.children)
        return DocumentNode(document=document, children=children)


def _count(nodes: List[DocumentNode]) -> int:
    return sum(1 + _count(node.children) for node in nodes)
