"""
Book store: validation and persistence mapping for the books table.
"""

from typing import Any, Dict, List, Type

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine

from books_api.errors import ConflictError, NotFoundError, ValidationError
from books_api.models import (
    BOOK_COLUMNS, BookCreate, BookUpdate, BookResponse, MessageResponse
)

logger = structlog.get_logger(__name__)

_COLUMNS = ", ".join(BOOK_COLUMNS)

INSERT_BOOK = f"""
    INSERT INTO books ({_COLUMNS})
    VALUES (:isbn, :amazon_url, :author, :language, :pages, :publisher, :title, :year)
    RETURNING {_COLUMNS}
"""

SELECT_ALL_BOOKS = f"SELECT {_COLUMNS} FROM books ORDER BY title"

SELECT_BOOK = f"SELECT {_COLUMNS} FROM books WHERE isbn = :isbn"

UPDATE_BOOK = f"""
    UPDATE books
    SET amazon_url = :amazon_url,
        author = :author,
        language = :language,
        pages = :pages,
        publisher = :publisher,
        title = :title,
        year = :year
    WHERE isbn = :isbn
    RETURNING {_COLUMNS}
"""

DELETE_BOOK = "DELETE FROM books WHERE isbn = :isbn RETURNING isbn"

BOOK_DELETED = "Book deleted"


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    """Flatten pydantic error dicts into ``field: message`` strings."""
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return messages


def validate_payload(schema: Type[BaseModel], payload: Any) -> BaseModel:
    """
    Validate a raw request payload against a schema.

    Args:
        schema: Pydantic model describing the accepted fields
        payload: Decoded JSON body

    Returns:
        Validated model instance

    Raises:
        ValidationError: If the payload is not an object or breaks the schema
    """
    if not isinstance(payload, dict):
        raise ValidationError(["Request body must be a JSON object"])
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(format_validation_errors(e.errors())) from e


class BookStore:
    """Relational store for the books table."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def create(self, payload: Any) -> BookResponse:
        """
        Validate and insert a new book.

        Args:
            payload: Decoded JSON body including the isbn

        Returns:
            The persisted book record

        Raises:
            ValidationError: If the payload breaks the schema
            ConflictError: If a book with the same isbn already exists
        """
        book = validate_payload(BookCreate, payload)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(text(INSERT_BOOK), book.model_dump())
                row = result.mappings().one()
        except IntegrityError as e:
            logger.warning("Duplicate isbn on create", isbn=book.isbn)
            raise ConflictError(book.isbn) from e
        except Exception as e:
            logger.error("Failed to create book", isbn=book.isbn, error=str(e))
            raise

        logger.info("Book created", isbn=row["isbn"])
        return BookResponse(**row)

    async def list_all(self) -> List[BookResponse]:
        """Return every book in the table."""
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(SELECT_ALL_BOOKS))
                rows = result.mappings().all()
        except Exception as e:
            logger.error("Failed to list books", error=str(e))
            raise

        return [BookResponse(**row) for row in rows]

    async def get_by_isbn(self, isbn: str) -> BookResponse:
        """
        Get a single book by isbn.

        Raises:
            NotFoundError: If no row matches
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(SELECT_BOOK), {"isbn": isbn})
                row = result.mappings().first()
        except Exception as e:
            logger.error("Failed to get book", isbn=isbn, error=str(e))
            raise

        if row is None:
            raise NotFoundError(isbn)
        return BookResponse(**row)

    async def update(self, isbn: str, payload: Any) -> BookResponse:
        """
        Replace every non-key field of an existing book.

        The isbn is immutable and comes from the path only; a payload
        carrying an ``isbn`` field is rejected whatever its value.

        Args:
            isbn: Key of the book to update
            payload: Decoded JSON body

        Returns:
            The updated book record

        Raises:
            ValidationError: If the payload breaks the schema or changes the isbn
            NotFoundError: If no row matches
        """
        if isinstance(payload, dict) and "isbn" in payload:
            logger.warning("Rejected isbn in update payload", isbn=isbn, payload_isbn=payload["isbn"])
            raise ValidationError(
                ["isbn: cannot be changed"],
                message="Updating a book's isbn is not allowed",
            )

        book = validate_payload(BookUpdate, payload)
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(text(UPDATE_BOOK), {"isbn": isbn, **book.model_dump()})
                row = result.mappings().first()
        except Exception as e:
            logger.error("Failed to update book", isbn=isbn, error=str(e))
            raise

        if row is None:
            raise NotFoundError(isbn)
        logger.info("Book updated", isbn=isbn)
        return BookResponse(**row)

    async def delete(self, isbn: str) -> MessageResponse:
        """
        Delete a book by isbn.

        Raises:
            NotFoundError: If no row matches
        """
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(text(DELETE_BOOK), {"isbn": isbn})
                row = result.first()
        except Exception as e:
            logger.error("Failed to delete book", isbn=isbn, error=str(e))
            raise

        if row is None:
            raise NotFoundError(isbn)
        logger.info("Book deleted", isbn=isbn)
        return MessageResponse(message=BOOK_DELETED)

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                result = await conn.execute(text("SELECT COUNT(*) FROM books"))
                books_count = result.scalar_one()

            return {
                "status": "healthy",
                "books_table": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
