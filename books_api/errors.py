"""Exception classes raised by the book store."""

from typing import List, Optional


class BookStoreError(Exception):
    """Base exception for book store operations."""

    pass


class ValidationError(BookStoreError):
    """Raised when a payload does not satisfy the book schema.

    API layer maps this to 400 Bad Request.
    """

    def __init__(self, errors: List[str], message: str = "Invalid book payload"):
        super().__init__(message)
        self.message = message
        self.errors = errors


class NotFoundError(BookStoreError):
    """Raised when no book matches the requested isbn.

    API layer maps this to 404 Not Found.
    """

    def __init__(self, isbn: str):
        super().__init__(f"There is no book with an isbn '{isbn}'")
        self.isbn = isbn


class ConflictError(BookStoreError):
    """Raised when creating a book whose isbn already exists."""

    def __init__(self, isbn: str, message: Optional[str] = None):
        super().__init__(message or f"A book with isbn '{isbn}' already exists")
        self.isbn = isbn


__all__ = ["BookStoreError", "ValidationError", "NotFoundError", "ConflictError"]
