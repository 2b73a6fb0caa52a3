"""
In-Memory Document Store

Async facade over mongomock that exposes the subset of the
pymongo AsyncMongoClient API used by the application:

    client[db_name][collection].find(...).to_list()
    await collection.find_one / insert_one / update_one / delete_one
    await collection.delete_many / estimated_document_count / create_index
    await (await collection.aggregate(pipeline)).to_list()
    await database.command("ping")

Used in development mode (ENV_MODE=development) so the API runs without a
MongoDB server, and by the test suite. Query, update and aggregation
semantics come from mongomock; only the coroutine surface lives here.
"""

import logging
from typing import Any, Optional

import mongomock

logger = logging.getLogger(__name__)


class MockCursor:
    """Cursor over an already evaluated mongomock result."""

    def __init__(self, cursor):
        self._cursor = cursor

    async def to_list(self, length: Optional[int] = None) -> list[dict]:
        documents = list(self._cursor)
        if length is not None:
            return documents[:length]
        return documents


class MockCollection:
    """Coroutine wrapper around a mongomock collection."""

    def __init__(self, collection):
        self._collection = collection

    def find(self, filter: Optional[dict] = None, *args, **kwargs) -> MockCursor:
        return MockCursor(self._collection.find(filter, *args, **kwargs))

    async def find_one(self, filter: Optional[dict] = None, *args, **kwargs) -> Optional[dict]:
        return self._collection.find_one(filter, *args, **kwargs)

    async def insert_one(self, document: dict, **kwargs):
        return self._collection.insert_one(document, **kwargs)

    async def update_one(self, filter: dict, update: dict, **kwargs):
        return self._collection.update_one(filter, update, **kwargs)

    async def delete_one(self, filter: dict, **kwargs):
        return self._collection.delete_one(filter, **kwargs)

    async def delete_many(self, filter: dict, **kwargs):
        return self._collection.delete_many(filter, **kwargs)

    async def count_documents(self, filter: dict, **kwargs) -> int:
        return self._collection.count_documents(filter, **kwargs)

    async def estimated_document_count(self, **kwargs) -> int:
        return self._collection.estimated_document_count(**kwargs)

    async def create_index(self, keys: Any, **kwargs) -> str:
        return self._collection.create_index(keys, **kwargs)

    async def aggregate(self, pipeline: list[dict], **kwargs) -> MockCursor:
        return MockCursor(self._collection.aggregate(pipeline, **kwargs))


class MockDatabase:
    """Coroutine wrapper around a mongomock database."""

    def __init__(self, database):
        self._database = database

    @property
    def name(self) -> str:
        return self._database.name

    def __getitem__(self, name: str) -> MockCollection:
        return MockCollection(self._database[name])

    async def command(self, command: str, **kwargs) -> dict:
        if command == "ping":
            return {"ok": 1.0}
        return self._database.command(command, **kwargs)


class MockMongoClient:
    """
    Drop-in replacement for pymongo.AsyncMongoClient in development mode.

    All data lives in process memory and is lost on shutdown.
    """

    def __init__(self):
        self._client = mongomock.MongoClient()
        logger.info("MockMongoClient initialized (in-memory store)")

    def __getitem__(self, name: str) -> MockDatabase:
        return MockDatabase(self._client[name])

    async def close(self) -> None:
        self._client.close()
