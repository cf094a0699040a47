"""
MongoDB client lifecycle for the relay: user accounts and the message log.
"""

import logging
from typing import Optional
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from app.core.config import settings

logger = logging.getLogger(__name__)

# collection -> (keys, options)
INDEXES = {
    "users": [
        ("username", {"unique": True}),
    ],
    "messages": [
        # history is looked up from either side of a conversation
        ([("sender", 1), ("recipient", 1), ("created_at", 1)], {}),
        ([("recipient", 1), ("sender", 1), ("created_at", 1)], {}),
    ],
}


class Database:
    """Holds the process-wide motor client and the selected database."""

    client: Optional[AsyncIOMotorClient] = None
    database: Optional[AsyncIOMotorDatabase] = None


db = Database()


async def connect_to_mongo():
    """Open the client, check the server answers, and ensure indexes."""
    logger.info(f"Connecting to MongoDB database '{settings.DATABASE_NAME}'")
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    try:
        await client.admin.command("ping")
    except Exception as e:
        logger.error(f"MongoDB did not answer ping: {e}")
        client.close()
        raise

    db.client = client
    db.database = client[settings.DATABASE_NAME]
    await create_indexes()
    logger.info("MongoDB connection ready")


async def close_mongo_connection():
    if db.client is None:
        return
    try:
        db.client.close()
        logger.info("MongoDB connection closed")
    except Exception as e:
        logger.error(f"Error closing MongoDB connection: {e}")
    finally:
        db.client = None
        db.database = None


async def create_indexes():
    """Create the indexes listed in INDEXES. Idempotent."""
    if db.database is None:
        return
    for collection, indexes in INDEXES.items():
        for keys, options in indexes:
            try:
                await db.database[collection].create_index(keys, **options)
            except Exception as e:
                logger.error(f"Error creating index {keys} on {collection}: {e}")
                raise
    logger.debug("Database indexes ensured")


def get_database() -> AsyncIOMotorDatabase:
    """Return the connected database; raises until connect_to_mongo() has run."""
    if db.database is None:
        raise RuntimeError("Database not initialized. Call connect_to_mongo() first.")
    return db.database
