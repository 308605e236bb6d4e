"""
Pytest configuration and shared fixtures for MDB_REPOSITORY tests.

This module provides:
- Process-wide state resets (identifier encoding, name registry, metrics)
- Mock motor client/database/collection fixtures
- Testcontainers fixtures for integration tests
"""

import os
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from bson.codec_options import DEFAULT_CODEC_OPTIONS

from mdb_repository.core.identifiers import get_identifier_encoding
from mdb_repository.core.naming import get_name_registry
from mdb_repository.observability import get_metrics_collector


# ============================================================================
# PROCESS-WIDE STATE
# ============================================================================


@pytest.fixture(autouse=True)
def reset_process_state():
    """Reset identifier encoding, name overrides and metrics around each test."""
    get_identifier_encoding().reset()
    get_name_registry().clear()
    get_metrics_collector().reset()
    yield
    get_identifier_encoding().reset()
    get_name_registry().clear()
    get_metrics_collector().reset()


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch):
    """Reset environment variables before each test."""
    env_vars_to_clear = [
        "MONGO_URI",
        "DB_NAME",
        "MONGO_MAX_POOL_SIZE",
        "MONGO_MIN_POOL_SIZE",
        "MONGO_SERVER_SELECTION_TIMEOUT_MS",
        "MONGO_UUID_REPRESENTATION",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    yield


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


def make_mock_collection(name: str) -> MagicMock:
    """Create a mock motor collection with async CRUD methods."""
    collection = MagicMock()
    collection.name = name
    collection.find_one = AsyncMock(return_value=None)
    cursor = MagicMock()
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find = MagicMock(return_value=cursor)
    collection.insert_one = AsyncMock(return_value=MagicMock(inserted_id="test_id"))
    collection.insert_many = AsyncMock(return_value=MagicMock(inserted_ids=["id1", "id2"]))
    collection.replace_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.delete_one = AsyncMock(return_value=MagicMock(deleted_count=1))
    collection.delete_many = AsyncMock(return_value=MagicMock(deleted_count=2))
    collection.count_documents = AsyncMock(return_value=0)
    return collection


@pytest.fixture
def mock_mongo_database() -> MagicMock:
    """
    Create a mock motor database.

    Collections are created on first access and kept in ``db.collections``
    so tests can check which physical names were addressed. The codec options
    of the latest ``get_collection`` call are stored on the collection.
    """
    db = MagicMock()
    db.name = "test_db"
    db.codec_options = DEFAULT_CODEC_OPTIONS
    db.collections = {}

    def get_collection(name: str, codec_options=None):
        collection = db.collections.get(name)
        if collection is None:
            collection = db.collections[name] = make_mock_collection(name)
        collection.codec_options = codec_options
        return collection

    async def drop_collection(name: str):
        db.collections.pop(name, None)

    db.get_collection = MagicMock(side_effect=get_collection)
    db.drop_collection = AsyncMock(side_effect=drop_collection)
    return db


@pytest.fixture
def mock_mongo_client(mock_mongo_database: MagicMock) -> MagicMock:
    """Create a mock motor client whose databases are ``mock_mongo_database``."""
    client = MagicMock()
    client.admin.command = AsyncMock(return_value={"ok": 1})
    client.codec_options = DEFAULT_CODEC_OPTIONS

    def get_database(name: str, codec_options=None):
        mock_mongo_database.name = name
        mock_mongo_database.requested_codec_options = codec_options
        return mock_mongo_database

    client.get_database = MagicMock(side_effect=get_database)
    return client


@pytest.fixture
def patched_motor_client(mock_mongo_client: MagicMock):
    """Patch ``AsyncIOMotorClient`` in the client context module."""
    with patch(
        "mdb_repository.core.client_context.AsyncIOMotorClient",
        return_value=mock_mongo_client,
    ) as client_cls:
        yield client_cls


@pytest.fixture
def client_context_config() -> Dict[str, Any]:
    """Provide default configuration for MongoClientContext."""
    return {
        "connection_string": "mongodb://localhost:27017",
        "max_pool_size": 10,
        "min_pool_size": 1,
    }


# ============================================================================
# TESTCONTAINERS FIXTURES (Real MongoDB for Integration Tests)
# ============================================================================


@pytest.fixture(scope="session")
def mongodb_container():
    """
    Start a MongoDB container for integration tests.

    Session-scoped: the container starts once and is reused by every
    integration test. ``MONGO_TEST_URI`` points the tests at an existing
    server instead.
    """
    if os.getenv("MONGO_TEST_URI"):
        yield None
        return

    try:
        from testcontainers.mongodb import MongoDbContainer
    except ImportError:
        pytest.skip("testcontainers not installed. Install with: pip install -e '.[test]'")

    with MongoDbContainer(image="mongo:7.0") as container:
        yield container


@pytest.fixture
def mongodb_connection_string(mongodb_container) -> str:
    """Connection string of the integration MongoDB."""
    if mongodb_container is None:
        return os.environ["MONGO_TEST_URI"]
    return mongodb_container.get_connection_url()


@pytest_asyncio.fixture
async def real_db_context(mongodb_connection_string):
    """
    MongoDbContext bound to a unique database on the integration server.

    The database is dropped and the client closed after the test.
    """
    from mdb_repository import MongoClientContext, MongoDbContext

    client_context = MongoClientContext(mongodb_connection_string, min_pool_size=0)
    db_name = f"mdb_repository_test_{os.getpid()}_{id(client_context)}"
    context = MongoDbContext(client_context, db_name)

    yield context

    try:
        await client_context.client.drop_database(db_name)
    finally:
        client_context.close()
