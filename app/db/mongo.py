"""
app/db/mongo.py

Purpose: MongoDB connection setup

- One Motor client per process, created at startup
- Every operation bounded by the collaborator timeout
- Connection retries with exponential backoff
- Accessors for the users, products and offers collections
"""

import asyncio
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

USERS = "users"
PRODUCTS = "products"
OFFERS = "offers"

CONNECT_ATTEMPTS = 3
FIRST_RETRY_DELAY_SECONDS = 2

_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


def _create_client() -> AsyncIOMotorClient:
    timeout_ms = int(settings.COLLABORATOR_TIMEOUT_SECONDS * 1000)
    return AsyncIOMotorClient(
        settings.MONGODB_URL,
        maxPoolSize=50,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        socketTimeoutMS=timeout_ms,
        retryWrites=True,
    )


async def connect_to_mongo():
    """
    Connects to MongoDB, retrying with backoff.

    Raises:
        ConnectionError: If every attempt fails
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    delay = FIRST_RETRY_DELAY_SECONDS
    for attempt in range(1, CONNECT_ATTEMPTS + 1):
        client = _create_client()
        try:
            await client.admin.command("ping")
        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            client.close()
            logger.error(f"MongoDB unreachable (attempt {attempt}/{CONNECT_ATTEMPTS}): {e}")
            if attempt == CONNECT_ATTEMPTS:
                raise ConnectionError("Could not establish MongoDB connection") from e
            await asyncio.sleep(delay)
            delay *= 2
            continue

        _client = client
        _database = client[settings.MONGODB_DB_NAME]
        logger.info(f"✅ Connected to MongoDB database {settings.MONGODB_DB_NAME}")
        return


async def close_mongo_connection():
    """Closes the client; safe to call when not connected."""
    global _client, _database

    if _client is None:
        return

    _client.close()
    _client = None
    _database = None
    logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    Pings the server.

    Returns:
        True if the ping succeeds, False when not connected or unreachable
    """
    if _client is None:
        return False

    try:
        await _client.admin.command("ping")
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False
    return True


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_users_collection() -> AsyncIOMotorCollection:
    """
    Users, keyed by Telegram chat id.

    Fields:
    - user_id: str (unique)
    - name: str
    - location: GeoJSON Point {"type": "Point", "coordinates": [lng, lat]}
    - kind: "farmer" | "consumer"
    - action: "onboarding" | ""
    - requirements: list[str] (onboarding queue)
    - created_at / last_interaction: datetime
    """
    return get_database()[USERS]


def get_products_collection() -> AsyncIOMotorCollection:
    """Products, keyed by case-sensitive unique name."""
    return get_database()[PRODUCTS]


def get_offers_collection() -> AsyncIOMotorCollection:
    """
    Standing sell offers.

    Fields:
    - product: ObjectId (products._id)
    - seller: ObjectId (users._id)
    - price: float
    - normalized_price: float (price / initial quantity)
    - quantity_kind: "mass" | "units"
    - mass: float (grams) or units: int, whichever matches quantity_kind
    - created_at: datetime
    """
    return get_database()[OFFERS]
