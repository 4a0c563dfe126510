"""
Async SQLAlchemy engine management for the books table.
Handles engine creation, table bootstrap and disposal.
"""

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from books_api.config import BookshelfConfig

logger = structlog.get_logger(__name__)

CREATE_BOOKS_TABLE = """
    CREATE TABLE IF NOT EXISTS books (
        isbn TEXT PRIMARY KEY,
        amazon_url TEXT NOT NULL,
        author TEXT NOT NULL,
        language TEXT NOT NULL,
        pages INTEGER NOT NULL,
        publisher TEXT NOT NULL,
        title TEXT NOT NULL,
        year INTEGER NOT NULL
    )
"""


def build_engine(config: BookshelfConfig) -> AsyncEngine:
    """
    Create the async engine for the configured database.

    Args:
        config: Application configuration

    Returns:
        AsyncEngine with a connection pool owned by the caller
    """
    return create_async_engine(
        config.database_url,
        echo=config.db_echo,
        pool_pre_ping=True,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create the books table if it does not exist yet."""
    async with engine.begin() as conn:
        await conn.execute(text(CREATE_BOOKS_TABLE))
    logger.info("Books table ready")


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of the connection pool on shutdown."""
    await engine.dispose()
    logger.info("Database connection pool disposed")
