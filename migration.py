"""
Migration script to move existing books onto integer stock counts.

Legacy documents stored `quantity` as a decimal string and kept a separate
`isBorrowed` flag. After this runs every book has an integer `quantity`, a
`borrowed_count` equal to the number of borrow records pointing at it, and no
stored `isBorrowed` (it is derived from `borrowed_count` at read time).
Running it twice is harmless; the API also runs it once at startup.

Usage:
    python migration.py
"""

import asyncio

import structlog
from motor.motor_asyncio import AsyncIOMotorClient

import config
from models import parse_quantity
from utils.logger import setup_logging

logger = structlog.get_logger(__name__)


def build_update(book: dict, borrowed_count: int = None) -> dict:
    """
    Return the update document for one book, or an empty dict if it is already
    migrated. An existing `borrowed_count` is live state and is never recomputed.
    """
    quantity = parse_quantity(book.get("quantity"))
    fields = {}
    if book.get("quantity") != quantity:
        fields["quantity"] = quantity
    if "borrowed_count" not in book:
        fields["borrowed_count"] = borrowed_count or 0

    update = {}
    if fields:
        update["$set"] = fields
    if "isBorrowed" in book:
        update["$unset"] = {"isBorrowed": ""}
    return update


async def migrate_books(db):
    migrated = 0
    async for book in db.books.find():
        borrowed_count = None
        if "borrowed_count" not in book:
            borrowed_count = await db.borrowedBooks.count_documents({"book_id": str(book["_id"])})
        update = build_update(book, borrowed_count)
        if not update:
            continue

        await db.books.update_one({"_id": book["_id"]}, update)
        migrated += 1
        logger.info(
            "Migrated book",
            book_id=str(book["_id"]),
            old_quantity=book.get("quantity"),
            update=update.get("$set"),
        )

    if migrated == 0:
        logger.info("No books need migration")
    else:
        logger.info("Migration completed", migrated=migrated)
    return migrated


async def main():
    client = AsyncIOMotorClient(config.MONGO_URL)
    try:
        await migrate_books(client[config.DB_NAME])
    finally:
        client.close()


if __name__ == "__main__":
    setup_logging(config.LOG_LEVEL, config.LOG_FORMAT)
    asyncio.run(main())
