"""
Database Connection Module
Handles the MongoDB connection using pymongo's asyncio client.

In development mode the client is the in-memory MockMongoClient, so the
API can be started without a database server.
"""

import logging
from functools import lru_cache
from typing import Any, AsyncIterator

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import OperationFailure
from pymongo.server_api import ServerApi

from bistro.core.config import Settings, get_settings
from bistro.mock_database import MockMongoClient
from bistro.models import Collection

logger = logging.getLogger(__name__)


def create_client(settings: Settings) -> Any:
    """
    Create the document store client for the configured environment.

    Real services use MongoDB with the Stable API v1 (strict), the
    development mode uses the in-memory store.
    """
    if not settings.use_real_services:
        logger.info("Database: Using MockMongoClient (development mode)")
        return MockMongoClient()

    logger.info(f"Database: Using MongoDB ({settings.env_mode.value} mode)")
    return AsyncMongoClient(
        settings.mongo_url,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
        appname=settings.app_name,
    )


@lru_cache()
def get_client() -> Any:
    """Get the process-wide client, created on first use."""
    return create_client(get_settings())


def get_database() -> Any:
    """Get the bistro database handle."""
    return get_client()[get_settings().database_name]


async def get_db() -> AsyncIterator[Any]:
    """
    Dependency injection for FastAPI routes.
    Yields the database handle shared by all requests.
    """
    yield get_database()


async def init_db() -> None:
    """
    Verify connectivity and create indexes.
    Called once at application startup.
    """
    db = get_database()
    await db.command("ping")
    logger.info(f"Connected to database '{db.name}'")

    try:
        await db[Collection.USERS.value].create_index(
            [("email", ASCENDING)], unique=True, name="email_unique"
        )
    except OperationFailure as e:
        # Existing duplicates keep the index from being built
        logger.warning(f"Could not create unique index on users.email: {e}")


async def close_db() -> None:
    """Close the client and forget it."""
    if get_client.cache_info().currsize:
        await get_client().close()
        get_client.cache_clear()
    logger.info("Database connection closed")
