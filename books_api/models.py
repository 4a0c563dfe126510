"""
API models and schemas for the FastAPI application.

The request models double as the declarative validation rule set for
the ``books`` table: every column, its type and its constraints are
listed once here and shared by the create and update paths.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

BOOK_COLUMNS = (
    "isbn",
    "amazon_url",
    "author",
    "language",
    "pages",
    "publisher",
    "title",
    "year",
)

# Largest value a 32-bit INTEGER column holds
MAX_INTEGER = 2_147_483_647


class BookFields(BaseModel):
    """Fields shared by every write to the books table, isbn excluded."""
    amazon_url: str = Field(..., pattern=r"^https?://\S+$", description="Amazon product page URL")
    author: str = Field(..., min_length=1, description="Book author")
    language: str = Field(..., min_length=1, description="Language the book is written in")
    pages: int = Field(..., gt=0, le=MAX_INTEGER, description="Number of pages")
    publisher: str = Field(..., min_length=1, description="Book publisher")
    title: str = Field(..., min_length=1, description="Book title")
    year: int = Field(..., ge=0, description="Year of publication")

    model_config = {
        "strict": True,
        "extra": "forbid"
    }

    @field_validator('year')
    @classmethod
    def validate_year(cls, v):
        """Reject publication years in the future."""
        latest = datetime.now().year + 1
        if v > latest:
            raise ValueError(f'year must not be later than {latest}')
        return v


class BookCreate(BookFields):
    """Payload accepted by POST /books."""
    isbn: str = Field(..., min_length=1, description="Client-assigned ISBN")


class BookUpdate(BookFields):
    """Payload accepted by PUT /books/{isbn}. The isbn itself is immutable."""
    pass


class BookResponse(BaseModel):
    """Book record as stored in the books table."""
    isbn: str = Field(..., description="Unique book identifier")
    amazon_url: str = Field(..., description="Amazon product page URL")
    author: str = Field(..., description="Book author")
    language: str = Field(..., description="Language the book is written in")
    pages: int = Field(..., description="Number of pages")
    publisher: str = Field(..., description="Book publisher")
    title: str = Field(..., description="Book title")
    year: int = Field(..., description="Year of publication")


class BookEnvelope(BaseModel):
    """Single book response wrapper."""
    book: BookResponse


class BookListResponse(BaseModel):
    """Response model for the full book listing."""
    books: List[BookResponse] = Field(..., description="List of books")


class MessageResponse(BaseModel):
    """Confirmation message response."""
    message: str = Field(..., description="Confirmation message")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    errors: Optional[List[str]] = Field(None, description="Individual validation failures")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
