"""
Pytest configuration and shared fixtures for directory transfer tests
"""

import logging
from datetime import UTC, datetime

import pytest

from dirtransfer.core.config import TransferConfig, configure
from dirtransfer.stores.memory import InMemoryObjectStore

# ============================================
# AUTO-USE FIXTURES
# ============================================


@pytest.fixture(autouse=True)
def default_config():
    """Reset the global configuration for every test."""
    config = TransferConfig(concurrent_service_requests=4)
    configure(config)
    yield config
    configure(TransferConfig())


@pytest.fixture(autouse=True, scope="session")
def quiet_transfer_logs():
    """Keep per-item debug logs out of test output."""
    logging.getLogger("dirtransfer").setLevel(logging.INFO)


# ============================================
# STORE FIXTURES
# ============================================

MODIFIED = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def store():
    return InMemoryObjectStore(page_size=2, chunk_size=64)


@pytest.fixture
def docs_store():
    """
    The ``docs/`` scenario: two files and a directory marker.
    """
    store = InMemoryObjectStore(page_size=2, chunk_size=64)
    store.put("b", "docs/", b"", MODIFIED)
    store.put("b", "docs/a.txt", b"a" * 100, MODIFIED)
    store.put("b", "docs/b.txt", b"b" * 200, MODIFIED)
    return store
