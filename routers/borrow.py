import structlog
from fastapi import APIRouter, Depends, HTTPException, Query

from database import get_db, serialize, to_object_id, find_one, find_many
import models

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/borrowedBooks", tags=["Borrow"])


@router.post("", response_model=models.InsertResult)
async def create_borrow_record(record: models.BorrowRecordCreate, db=Depends(get_db)):
    # Stock is adjusted separately through PUT /allBooks
    result = await db.borrowedBooks.insert_one(record.model_dump())
    logger.info("Borrow recorded", record_id=str(result.inserted_id), book_id=record.book_id)
    return models.InsertResult(acknowledged=result.acknowledged, inserted_id=str(result.inserted_id))


@router.get("", response_model=list[models.BorrowRecordResponse])
async def list_borrow_records(email: str = Query(...), db=Depends(get_db)):
    records = await find_many(db.borrowedBooks, {"email": email})
    return [models.BorrowRecordResponse(**serialize(r)) for r in records]


@router.get("/{record_id}", response_model=models.BorrowRecordResponse)
async def get_borrow_record(record_id: str, db=Depends(get_db)):
    record = await find_one(db.borrowedBooks, {"_id": to_object_id(record_id, "borrow ID")})
    if not record:
        raise HTTPException(status_code=404, detail="Borrow record not found")
    return models.BorrowRecordResponse(**serialize(record))


@router.delete("/{record_id}", response_model=models.DeleteResult)
async def delete_borrow_record(record_id: str, db=Depends(get_db)):
    """Remove a borrow record. Deleting an unknown id reports deletedCount 0."""
    result = await db.borrowedBooks.delete_one({"_id": to_object_id(record_id, "borrow ID")})
    if result.deleted_count:
        logger.info("Borrow record deleted", record_id=record_id)
    return models.DeleteResult(acknowledged=result.acknowledged, deleted_count=result.deleted_count)
