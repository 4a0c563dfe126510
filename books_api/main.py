"""
FastAPI main application for the Bookshelf API.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from books_api.config import BookshelfConfig, config
from books_api.database import build_engine, close_db, init_db
from books_api.errors import BookStoreError, ConflictError, NotFoundError, ValidationError
from books_api.models import (
    BookEnvelope, BookListResponse, MessageResponse,
    ErrorResponse, HealthResponse
)
from books_api.store import BookStore, format_validation_errors
from utilities.logger import setup_logging

# Setup logging
logger = structlog.get_logger(__name__)

router = APIRouter()


def get_store(request: Request) -> BookStore:
    """Dependency returning the store bound to the running application."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return store


def _error_response(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, status_code=status_code, **extra).model_dump()
    )


# Health check endpoint
@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    version = request.app.state.config.api_version
    try:
        db_status = "unknown"
        store = getattr(request.app.state, "store", None)
        if store:
            health_info = await store.health_check()
            db_status = health_info.get("status", "unknown")

        return HealthResponse(
            status="healthy" if db_status == "healthy" else "degraded",
            timestamp=datetime.utcnow(),
            version=version,
            database_status=db_status
        )
    except Exception as e:
        logger.error("Health check failed", error=str(e))
        return HealthResponse(
            status="unhealthy",
            timestamp=datetime.utcnow(),
            version=version,
            database_status="unhealthy"
        )


# Books endpoints
@router.post(
    "/books",
    response_model=BookEnvelope,
    status_code=status.HTTP_201_CREATED,
    tags=["Books"]
)
async def create_book(
    payload: Any = Body(None),
    store: BookStore = Depends(get_store)
):
    """
    Create a book.

    The body must carry every book field, including the client-assigned
    **isbn**. Unknown fields are rejected.
    """
    try:
        book = await store.create(payload)
        return BookEnvelope(book=book)
    except BookStoreError:
        raise
    except Exception as e:
        logger.error("Failed to create book", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create book"
        )


@router.get("/books", response_model=BookListResponse, tags=["Books"])
async def get_books(store: BookStore = Depends(get_store)):
    """Get every book in the catalogue."""
    try:
        books = await store.list_all()
        return BookListResponse(books=books)
    except Exception as e:
        logger.error("Failed to get books", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve books"
        )


@router.get("/books/{isbn}", response_model=BookEnvelope, tags=["Books"])
async def get_book(isbn: str, store: BookStore = Depends(get_store)):
    """
    Get a single book by isbn.

    - **isbn**: Book identifier
    """
    try:
        book = await store.get_by_isbn(isbn)
        return BookEnvelope(book=book)
    except BookStoreError:
        raise
    except Exception as e:
        logger.error("Failed to get book", isbn=isbn, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve book"
        )


@router.put("/books/{isbn}", response_model=BookEnvelope, tags=["Books"])
async def update_book(
    isbn: str,
    payload: Any = Body(None),
    store: BookStore = Depends(get_store)
):
    """
    Replace every field of a book except its isbn.

    - **isbn**: Book identifier; an isbn field in the body is rejected
    """
    try:
        book = await store.update(isbn, payload)
        return BookEnvelope(book=book)
    except BookStoreError:
        raise
    except Exception as e:
        logger.error("Failed to update book", isbn=isbn, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update book"
        )


@router.delete("/books/{isbn}", response_model=MessageResponse, tags=["Books"])
async def delete_book(isbn: str, store: BookStore = Depends(get_store)):
    """Delete a book by isbn."""
    try:
        return await store.delete(isbn)
    except BookStoreError:
        raise
    except Exception as e:
        logger.error("Failed to delete book", isbn=isbn, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete book"
        )


def register_exception_handlers(app: FastAPI) -> None:
    """Map store errors and framework errors onto the shared error envelope."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.warning("Invalid book payload", path=request.url.path, errors=exc.errors)
        return _error_response(status.HTTP_400_BAD_REQUEST, exc.message, errors=exc.errors)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = format_validation_errors(exc.errors())
        logger.warning("Malformed request", path=request.url.path, errors=errors)
        return _error_response(status.HTTP_400_BAD_REQUEST, "Malformed request", errors=errors)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        logger.warning("Book not found", isbn=exc.isbn)
        return _error_response(status.HTTP_404_NOT_FOUND, str(exc))

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError):
        return _error_response(request.app.state.config.conflict_status_code, str(exc))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=str(exc.detail),
                status_code=exc.status_code
            ).model_dump(),
            headers=exc.headers
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle general exceptions."""
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            detail=str(exc) if request.app.state.config.debug else None
        )


def create_app(app_config: BookshelfConfig = config) -> FastAPI:
    """
    Build the FastAPI application.

    The engine is created in the lifespan and handed to a ``BookStore``
    kept on ``app.state``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_logging(
            log_level=app_config.log_level,
            log_format=app_config.log_format,
            log_file=app_config.get_log_file_path(),
            debug=app_config.debug
        )
        logger.info("Starting Bookshelf API")

        engine = build_engine(app_config)
        try:
            if app_config.create_tables:
                await init_db(engine)
            store = BookStore(engine)
            health_info = await store.health_check()
            if health_info["status"] != "healthy":
                raise RuntimeError(health_info.get("error", "database unavailable"))
            logger.info("Database connection established")
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            await close_db(engine)
            raise

        app.state.store = store

        yield

        logger.info("Shutting down Bookshelf API")
        app.state.store = None
        await close_db(engine)

    app = FastAPI(
        title=app_config.api_title,
        description=app_config.api_description,
        version=app_config.api_version,
        lifespan=lifespan
    )
    app.state.config = app_config
    app.state.store = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_origins,
        allow_credentials=app_config.cors_allow_credentials,
        allow_methods=app_config.cors_allow_methods,
        allow_headers=app_config.cors_allow_headers,
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()
