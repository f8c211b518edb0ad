"""Unit tests for file_mapper.hierarchy_builder module."""

import asyncio

import pytest

from outline_sync.file_mapper.hierarchy_builder import HierarchyBuilder
from outline_sync.outline_client.concurrency import ConcurrencyLimiter
from outline_sync.outline_client.errors import APIUnreachableError
from outline_sync.outline_client.models import StructureNode
from tests.fixtures.sample_documents import COLLECTION_ID, doc_id, make_document


def _structure():
    return [
        StructureNode(doc_id(1), "Guides", [
            StructureNode(doc_id(2), "Install"),
            StructureNode(doc_id(3), "Upgrade"),
        ]),
        StructureNode(doc_id(4), "FAQ"),
    ]


class TestBuildHierarchy:
    """Test cases for HierarchyBuilder.build_hierarchy()."""

    @pytest.mark.asyncio
    async def test_builds_tree_in_remote_order(self, api):
        api.fetch_collection_structure.return_value = _structure()
        api.fetch_document.side_effect = lambda id: make_document(id, f"Doc {id[-1]}")

        nodes = await HierarchyBuilder(api, ConcurrencyLimiter(2)).build_hierarchy(COLLECTION_ID)

        assert [n.id for n in nodes] == [doc_id(1), doc_id(4)]
        assert [c.id for c in nodes[0].children] == [doc_id(2), doc_id(3)]
        assert nodes[1].children == []
        api.fetch_collection_structure.assert_awaited_once_with(COLLECTION_ID)
        assert api.fetch_document.await_count == 4

    @pytest.mark.asyncio
    async def test_never_exceeds_limit(self, api):
        """Concurrent fetches stay within the limiter's bound."""
        limiter = ConcurrencyLimiter(2)
        peak = 0

        async def fetch(id):
            nonlocal peak
            peak = max(peak, limiter.in_flight)
            await asyncio.sleep(0)
            return make_document(id, "Doc")

        api.fetch_collection_structure.return_value = [
            StructureNode(doc_id(n), f"Doc {n}") for n in range(1, 9)
        ]
        api.fetch_document.side_effect = fetch

        nodes = await HierarchyBuilder(api, limiter).build_hierarchy(COLLECTION_ID)

        assert len(nodes) == 8
        assert 1 <= peak <= 2
        assert limiter.in_flight == 0

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self, api):
        api.fetch_collection_structure.return_value = _structure()
        api.fetch_document.side_effect = APIUnreachableError("https://example.com/api")

        with pytest.raises(APIUnreachableError):
            await HierarchyBuilder(api, ConcurrencyLimiter(4)).build_hierarchy(COLLECTION_ID)
