from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from bson import ObjectId
from email_validator import EmailNotValidError, validate_email

# Fields the server owns on a book document
SERVER_BOOK_FIELDS = {"borrowed_count", "isBorrowed", "_id", "id"}
TEXT_FIELDS = ("book_title", "cover_photo", "author_name", "category")


def _check_object_id(value: str) -> str:
    if not ObjectId.is_valid(value):
        raise ValueError("must be a 24 character hex id")
    return value


def parse_quantity(value) -> int:
    """Best-effort conversion of a stored quantity; unusable values become 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value))
    try:
        return max(0, int(str(value).strip()))
    except (TypeError, ValueError):
        return 0


def parse_rating(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ---------- Session ----------
class SessionUser(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: EmailStr


class SuccessResponse(BaseModel):
    success: bool = True


# ---------- Books ----------
class BookBase(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    book_title: Optional[str] = None
    cover_photo: Optional[str] = None
    author_name: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[float] = None


class BookCreate(BookBase):
    # Decimal strings such as "3" are coerced to int
    quantity: int = Field(default=0, ge=0)

    def to_document(self) -> dict:
        doc = {k: v for k, v in self.model_dump(exclude_none=True).items() if k not in SERVER_BOOK_FIELDS}
        doc["borrowed_count"] = 0
        return doc


class BookMetadataUpdate(BaseModel):
    book_title: Optional[str] = None
    cover_photo: Optional[str] = None
    author_name: Optional[str] = None
    category: Optional[str] = None
    rating: Optional[float] = None


class BookResponse(BookBase):
    id: str = Field(alias="_id")
    quantity: int = 0
    borrowed_count: int = 0
    is_borrowed: bool = Field(default=False, alias="isBorrowed")

    # Stored documents were never validated on the way in, so reads coerce instead of failing
    @field_validator(*TEXT_FIELDS, mode="before")
    @classmethod
    def text_or_none(cls, v):
        return v if v is None or isinstance(v, str) else str(v)

    @field_validator("rating", mode="before")
    @classmethod
    def lenient_rating(cls, v):
        return parse_rating(v)

    @field_validator("quantity", "borrowed_count", mode="before")
    @classmethod
    def lenient_count(cls, v):
        return parse_quantity(v)

    @classmethod
    def from_document(cls, doc: dict) -> "BookResponse":
        data = dict(doc)
        data["isBorrowed"] = parse_quantity(data.get("borrowed_count")) > 0
        return cls(**data)


class QuantityChange(BaseModel):
    id: str

    @field_validator("id")
    @classmethod
    def valid_id(cls, v):
        return _check_object_id(v)


# ---------- Borrow ----------
class BorrowRecordCreate(BaseModel):
    model_config = ConfigDict(extra="allow")

    # Stored exactly as sent; only the format is checked
    email: str
    book_id: str

    @field_validator("email")
    @classmethod
    def valid_email(cls, v):
        try:
            validate_email(v, check_deliverability=False)
        except EmailNotValidError as e:
            raise ValueError(str(e))
        return v

    @field_validator("book_id")
    @classmethod
    def valid_book_id(cls, v):
        return _check_object_id(v)


class BorrowRecordResponse(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id")
    email: Optional[str] = None
    book_id: Optional[str] = None


# ---------- Store acknowledgements ----------
class AckModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    acknowledged: bool = True


class InsertResult(AckModel):
    inserted_id: str = Field(alias="insertedId")


class UpdateResult(AckModel):
    matched_count: int = Field(default=0, alias="matchedCount")
    modified_count: int = Field(default=0, alias="modifiedCount")
    upserted_id: Optional[str] = Field(default=None, alias="upsertedId")
    upserted_count: int = Field(default=0, alias="upsertedCount")


class QuantityResult(UpdateResult):
    quantity: int
    is_borrowed: bool = Field(alias="isBorrowed")


class DeleteResult(AckModel):
    deleted_count: int = Field(default=0, alias="deletedCount")


class HealthResponse(BaseModel):
    status: str
    database: str
