import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pymongo import ReturnDocument

from database import get_db, serialize, to_object_id, find_one, find_many
import models
from utils.dependencies import verify_token

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["Books"])


async def _require_book(db, book_oid):
    book = await find_one(db.books, {"_id": book_oid}, {"_id": 1})
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")


async def _adjust_quantity(db, book_oid, guard_field: str, step: int):
    """
    Single atomic stock change. The document only matches while `guard_field`
    is positive, so concurrent callers can never drive it below zero.
    """
    return await db.books.find_one_and_update(
        {"_id": book_oid, guard_field: {"$gt": 0}},
        {"$inc": {"quantity": step, "borrowed_count": -step}},
        return_document=ReturnDocument.AFTER,
    )


def _quantity_result(book: dict) -> models.QuantityResult:
    return models.QuantityResult(
        matched_count=1,
        modified_count=1,
        quantity=book["quantity"],
        is_borrowed=book.get("borrowed_count", 0) > 0,
    )


@router.post("/allBooks", response_model=models.InsertResult)
async def add_book(book: models.BookCreate, db=Depends(get_db)):
    result = await db.books.insert_one(book.to_document())
    logger.info("Book created", book_id=str(result.inserted_id), quantity=book.quantity)
    return models.InsertResult(acknowledged=result.acknowledged, inserted_id=str(result.inserted_id))


@router.get("/allBooks", response_model=list[models.BookResponse])
async def list_books(session=Depends(verify_token), db=Depends(get_db)):
    books = await find_many(db.books)
    return [models.BookResponse.from_document(serialize(b)) for b in books]


@router.get("/books/{category}", response_model=list[models.BookResponse])
async def list_books_by_category(category: str, db=Depends(get_db)):
    books = await find_many(db.books, {"category": category})
    return [models.BookResponse.from_document(serialize(b)) for b in books]


@router.get("/book/{book_id}", response_model=models.BookResponse)
async def get_book(book_id: str, db=Depends(get_db)):
    book = await find_one(db.books, {"_id": to_object_id(book_id, "book ID")})
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return models.BookResponse.from_document(serialize(book))


@router.get("/availableBooks", response_model=list[models.BookResponse])
async def list_available_books(db=Depends(get_db)):
    books = await find_many(db.books, {"quantity": {"$gt": 0}})
    return [models.BookResponse.from_document(serialize(b)) for b in books]


@router.put("/allBooks", response_model=models.QuantityResult)
async def borrow_copy(change: models.QuantityChange, db=Depends(get_db)):
    """Take one copy out of stock; fails with 409 when none are left."""
    book_oid = to_object_id(change.id, "book ID")
    book = await _adjust_quantity(db, book_oid, "quantity", -1)

    if book is None:
        await _require_book(db, book_oid)
        logger.warning("Borrow rejected, no stock", book_id=change.id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="No copies of this book are currently available",
        )

    logger.info("Copy borrowed", book_id=change.id, quantity=book["quantity"])
    return _quantity_result(book)


@router.put("/allBooks2", response_model=models.QuantityResult)
async def return_copy(change: models.QuantityChange, db=Depends(get_db)):
    """Put one copy back; only books with an outstanding borrow accept a return."""
    book_oid = to_object_id(change.id, "book ID")
    book = await _adjust_quantity(db, book_oid, "borrowed_count", 1)

    if book is None:
        await _require_book(db, book_oid)
        logger.warning("Return rejected, nothing borrowed", book_id=change.id)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This book has no outstanding borrows",
        )

    logger.info("Copy returned", book_id=change.id, quantity=book["quantity"])
    return _quantity_result(book)


@router.patch("/updateBook/{book_id}", response_model=models.UpdateResult)
async def update_book(
    book_id: str,
    updated_book: models.BookMetadataUpdate,
    upsert: bool = False,
    db=Depends(get_db),
):
    """Replace catalogue metadata. A missing book is only created when `upsert=true`."""
    book_oid = to_object_id(book_id, "book ID")
    fields = updated_book.model_dump(exclude_unset=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    update = {"$set": fields}
    if upsert:
        update["$setOnInsert"] = {"quantity": 0, "borrowed_count": 0}

    result = await db.books.update_one({"_id": book_oid}, update, upsert=upsert)

    if result.matched_count == 0 and result.upserted_id is None:
        raise HTTPException(status_code=404, detail="Book not found")

    if result.upserted_id is not None:
        logger.info("Book created by upsert", book_id=book_id)

    return models.UpdateResult(
        acknowledged=result.acknowledged,
        matched_count=result.matched_count,
        modified_count=result.modified_count,
        upserted_id=str(result.upserted_id) if result.upserted_id is not None else None,
        upserted_count=1 if result.upserted_id is not None else 0,
    )
