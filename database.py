import asyncio

import structlog
from bson import ObjectId
from fastapi import HTTPException, status
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import AutoReconnect, NetworkTimeout, PyMongoError
from pymongo.server_api import ServerApi

import config

logger = structlog.get_logger(__name__)

# Process-wide handles, set by connect() during application startup
client = None
db = None

TRANSIENT_ERRORS = (AutoReconnect, NetworkTimeout)


async def connect(url: str = None, db_name: str = None) -> bool:
    """
    Open the shared client. An unreachable store is logged, not raised: the
    handles stay in place so motor can reconnect later, and requests answer 503
    until it does.
    """
    global client, db
    client = AsyncIOMotorClient(
        url or config.MONGO_URL,
        server_api=ServerApi("1", strict=True, deprecation_errors=True),
    )
    db = client[db_name or config.DB_NAME]
    try:
        await ping()
    except PyMongoError as e:
        logger.error("MongoDB unreachable at startup", database=db.name, error=str(e))
        return False
    logger.info("Pinged your deployment. Connected to MongoDB", database=db.name)
    return True


async def close():
    global client, db
    if client is not None:
        client.close()
        logger.info("MongoDB connection closed")
    client = None
    db = None


async def ping():
    await client.admin.command("ping")


def get_db():
    """FastAPI dependency returning the shared database handle."""
    if db is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service unavailable")
    return db


def obj_to_str(obj):
    return str(obj) if isinstance(obj, ObjectId) else obj


def to_object_id(value: str, label: str = "ID") -> ObjectId:
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise HTTPException(status_code=400, detail=f"Invalid {label} format")
    return ObjectId(value)


def serialize(doc: dict) -> dict:
    """Stringify ObjectId values so the document can be fed to a response model."""
    if doc is None:
        return None
    return {k: obj_to_str(v) for k, v in doc.items()}


async def with_retry(operation, *args, attempts: int = None, delay: float = None, **kwargs):
    """
    Run an idempotent store read, retrying transient network failures with
    exponential backoff. Other errors propagate immediately.
    """
    attempts = config.DB_RETRY_ATTEMPTS if attempts is None else attempts
    delay = config.DB_RETRY_DELAY if delay is None else delay

    for attempt in range(attempts + 1):
        try:
            return await operation(*args, **kwargs)
        except TRANSIENT_ERRORS as e:
            if attempt >= attempts:
                logger.error("Store read failed after retries", attempts=attempts, error=str(e))
                raise
            wait = delay * (2 ** attempt)
            logger.warning("Retrying store read", attempt=attempt + 1, max_attempts=attempts, delay_seconds=wait)
            await asyncio.sleep(wait)


async def find_one(collection, query: dict, *args):
    return await with_retry(collection.find_one, query, *args)


async def find_many(collection, query: dict = None):
    async def _collect():
        return [doc async for doc in collection.find(query or {})]
    return await with_retry(_collect)
