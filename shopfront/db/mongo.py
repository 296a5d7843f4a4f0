# shopfront/db/mongo.py
import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING
from shopfront.core.config import get_settings
from shopfront.domain.services.constants import (
    TABLE_BROWSING_HISTORY,
    TABLE_PRODUCTS,
    TABLE_SESSIONS,
    TABLE_WISHLISTS,
)
import certifi

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None
_db: AsyncIOMotorDatabase | None = None


def get_client() -> AsyncIOMotorClient:
    assert _client is not None, "Mongo client not initialized"
    return _client


def get_db() -> AsyncIOMotorDatabase:
    assert _db is not None, "Mongo DB not initialized"
    return _db


async def ensure_indexes(db: AsyncIOMotorDatabase) -> None:
    """
    Composite keys the stores rely on:
      wishlists(user_id, product_id) unique      -> membership is a set
      browsing_history(user_id, product_id) unique -> one ViewRecord per pair
    """
    await db[TABLE_WISHLISTS].create_index(
        [("user_id", ASCENDING), ("product_id", ASCENDING)], unique=True, name="uniq_user_product"
    )
    await db[TABLE_BROWSING_HISTORY].create_index(
        [("user_id", ASCENDING), ("product_id", ASCENDING)], unique=True, name="uniq_user_product"
    )
    await db[TABLE_BROWSING_HISTORY].create_index([("user_id", ASCENDING), ("viewed_at", -1)], name="user_recent")
    await db[TABLE_PRODUCTS].create_index("id", unique=True, name="uniq_id")
    await db[TABLE_SESSIONS].create_index("access_token", unique=True, name="uniq_token")


async def connect():
    """
    Create Motor client with explicit CA bundle.
    Do not crash the app if the initial ping fails: keep a lazy client so
    requests can retry once the cluster/network is reachable.
    """
    global _client, _db
    settings = get_settings()

    def _new_client() -> AsyncIOMotorClient:
        kwargs = dict(
            uuidRepresentation="standard",
            serverSelectionTimeoutMS=6000,
            connectTimeoutMS=6000,
            tz_aware=True,
        )
        if settings.MONGO_URI.startswith("mongodb+srv://"):
            kwargs.update(tls=True, tlsCAFile=certifi.where())
        return AsyncIOMotorClient(settings.MONGO_URI, **kwargs)

    try:
        _client = _new_client()
        _db = _client[settings.MONGO_DB]
        # Soft fail-fast: try a ping, but don't abort on failure
        await _client.admin.command("ping")
        logger.info("Mongo connected (ping ok)")
        await ensure_indexes(_db)
    except Exception as e:
        logger.warning("Mongo ping at startup failed: %s", e)
        try:
            # keep a lazy client; first real query will attempt to connect again
            _client = _new_client()
            _db = _client[settings.MONGO_DB]
            logger.warning("Mongo will attempt lazy connection on first query")
        except Exception as e2:
            # as a last resort, keep None; routes that need DB will assert
            _client = None
            _db = None
            logger.error("Mongo client init failed: %s", e2)


async def disconnect():
    global _client, _db
    if _client:
        _client.close()
    _client = None
    _db = None
