"""
MongoDB Database Connector (process-wide async handle).

The client is created once, on first use, and reused by every vendor
pipeline in the process. Callers obtain the handle with get_db() and pass
it explicitly into the stores that need it.
"""
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from core.config import Config
from core.logging import get_logger

logger = get_logger("database")

_db_client: Optional[AsyncMongoClient] = None
_database: Optional[AsyncDatabase] = None


def get_db(config: Config) -> AsyncDatabase:
    """
    Returns the MongoDB database handle, creating the client on first call.

    AsyncMongoClient connects lazily, so building it never suspends and two
    coroutines asking for the handle cannot race.

    Args:
        config: Application configuration (connection URI and database name).

    Returns:
        AsyncDatabase: The shared database object.
    """
    global _db_client, _database

    if _database is None:
        try:
            logger.info("Connecting to MongoDB", extra={"database": config.DATABASE_NAME})
            _db_client = AsyncMongoClient(config.MONGO_URI)
            _database = _db_client[config.DATABASE_NAME]
        except Exception:
            logger.error("Failed to create MongoDB client", exc_info=True)
            raise

    return _database


async def ping_db(config: Config) -> bool:
    """Round-trip a ping command; raises if the server is unreachable."""
    db = get_db(config)
    await db.command("ping")
    logger.info("MongoDB reachable", extra={"database": config.DATABASE_NAME})
    return True


async def close_db():
    """Close the database connection."""
    global _db_client, _database

    if _db_client:
        try:
            await _db_client.close()
            logger.info("Database connection closed")
        except Exception:
            logger.error("Error closing database connection", exc_info=True)
        finally:
            _db_client = None
            _database = None
