"""
Shared pytest fixtures for key-value engine tests.
"""

import os
import tempfile

import pytest

from snapkv.engine.engine import Engine
from snapkv.models.concurrent_map import ConcurrentMap
from snapkv.models.locks import GlobalLock, ShardedLock


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def data_file(temp_dir):
    """Provide a path for the snapshot file (not created)."""
    return os.path.join(temp_dir, "store.json")


@pytest.fixture
async def engine(data_file):
    """Provide a running Engine instance."""
    async with Engine(data_file=data_file) as eng:
        yield eng


@pytest.fixture(params=["global", "sharded"])
def lock_strategy(request):
    """Provide each lock strategy in turn."""
    if request.param == "global":
        return GlobalLock()
    return ShardedLock(shards=8)


@pytest.fixture
def store(lock_strategy):
    """Provide an empty ConcurrentMap for each lock strategy."""
    return ConcurrentMap(lock_strategy)


@pytest.fixture
def sample_entries():
    """Provide sample key-value entries for testing."""
    return {
        "key1": b"value1",
        "key2": b"value2",
        "key3": b"value3",
    }


@pytest.fixture
def large_sample_entries():
    """Provide larger sample for stress testing."""
    return {f"key{i:04d}": f"value{i}".encode() for i in range(1000)}
