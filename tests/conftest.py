"""Root pytest configuration for all tests."""

import logging

import pytest

from tests.fixtures.sample_documents import make_api, make_collection

# Keep test output readable when a test enables verbose CLI logging
logging.getLogger("httpx").setLevel(logging.WARNING)


@pytest.fixture
def api():
    """Mocked remote document store."""
    return make_api()


@pytest.fixture
def collection(tmp_path):
    """Collection whose output directory is a fresh temporary directory."""
    return make_collection(tmp_path / "handbook")
