"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from datetime import datetime
from pathlib import Path

# Keep a developer's local .env out of the test run
os.environ["SVC_CONFIG_PATH"] = os.devnull
for key in [k for k in os.environ if k.startswith("SVC_MYSQL_")]:
    del os.environ[key]

# Add the project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import AsyncMock

from sqlalchemy import create_engine, insert

from blockmeta.models import Base, BlockHeight, MainnetBlock
from blockmeta.services.meta_storage import MetaStorage
from meta_rpc.request_processor import JsonRpcConfig, JsonRpcRequestProcessor

SEEDED_SLOTS = (100, 101, 105, 110)

# slot -> latest block height row
SEEDED_HEIGHTS = {100: 90, 110: 98}


def seeded_block_time(slot: int) -> datetime:
    """Naive UTC block time stored for a seeded slot."""
    return datetime(2024, 1, 1, 0, 0, slot % 60, 250000)


@pytest.fixture
def block_time_of():
    """Block time lookup for seeded slots."""
    return seeded_block_time


@pytest.fixture
def sqlite_engine(tmp_path):
    """
    File-backed SQLite engine with the metadata tables created.

    A file database gives every worker thread its own pooled connection.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'meta.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def seeded_engine(sqlite_engine):
    """Engine whose block table holds slots 100, 101, 105 and 110."""
    with sqlite_engine.begin() as conn:
        conn.execute(
            insert(MainnetBlock),
            [{"id": slot, "block_time": seeded_block_time(slot)} for slot in SEEDED_SLOTS],
        )
        conn.execute(
            insert(BlockHeight),
            [{"id": slot, "block_height": height} for slot, height in SEEDED_HEIGHTS.items()],
        )
    return sqlite_engine


@pytest.fixture
def meta_storage(seeded_engine):
    """MetaStorage over the seeded SQLite database."""
    return MetaStorage.from_engine(seeded_engine)


@pytest.fixture
def empty_meta_storage(sqlite_engine):
    """MetaStorage over empty tables."""
    return MetaStorage.from_engine(sqlite_engine)


@pytest.fixture
def mock_storage():
    """Mock metadata store with every read stubbed."""
    storage = AsyncMock(spec=MetaStorage)
    storage.get_first_available_block = AsyncMock(return_value=100)
    storage.get_slot = AsyncMock(return_value=110)
    storage.get_confirmed_blocks = AsyncMock(return_value=list(SEEDED_SLOTS))
    storage.get_block_time = AsyncMock()
    storage.get_block_height = AsyncMock(return_value=98)
    return storage


@pytest.fixture
def rpc_config():
    """Full-API service config without storage."""
    return JsonRpcConfig.default_for_storage_rpc(rpc_threads=2)


@pytest.fixture
def processor(rpc_config, mock_storage):
    """Request processor backed by the mock store."""
    return JsonRpcRequestProcessor(rpc_config, mock_storage)


@pytest.fixture
def storageless_processor(rpc_config):
    """Request processor with storage not configured."""
    return JsonRpcRequestProcessor(rpc_config, None)
