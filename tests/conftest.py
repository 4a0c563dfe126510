"""
Pytest configuration and shared fixtures.
"""

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text

from books_api.config import BookshelfConfig
from books_api.database import build_engine, close_db, init_db
from books_api.main import create_app
from books_api.store import BookStore

SEED_BOOK_SQL = """
    INSERT INTO books (
        isbn,
        amazon_url,
        author,
        language,
        pages,
        publisher,
        title,
        year
    )
    VALUES (
        :isbn,
        :amazon_url,
        :author,
        :language,
        :pages,
        :publisher,
        :title,
        :year
    )
    RETURNING isbn
"""


@pytest.fixture
def sample_book_data():
    """Book seeded into the table before each API test."""
    return {
        "isbn": "123456789",
        "amazon_url": "https://www.amazon.com/booky-book-book",
        "author": "Old Gregg",
        "language": "English",
        "pages": 500,
        "publisher": "Baileys Shoes Press",
        "title": "Motha-licka",
        "year": 2004
    }


@pytest.fixture
def new_book_data():
    """A valid book payload that is not in the table yet."""
    return {
        "isbn": "987654321",
        "amazon_url": "https://www.amazon.com/book-bookity",
        "author": "Petey",
        "language": "English",
        "pages": 420,
        "publisher": "Jerod Letuce Press",
        "title": "Attack Helicopter",
        "year": 2022
    }


@pytest.fixture
def update_book_data(new_book_data):
    """A valid update payload: every field except isbn."""
    data = dict(new_book_data)
    del data["isbn"]
    data["title"] = "ATTACK! Helicopter"
    return data


@pytest.fixture
def db_path(tmp_path):
    """Path of a throwaway SQLite database."""
    return tmp_path / "books.db"


@pytest.fixture
def test_config(db_path):
    """Configuration pointing at the throwaway database."""
    return BookshelfConfig(
        database_url=f"sqlite+aiosqlite:///{db_path}",
        log_level="WARNING",
        log_format="console",
        log_file=None,
        debug=False
    )


def _insert_book(db_path, book_data) -> str:
    """Insert a book with plain SQL, bypassing the API."""
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        with engine.begin() as conn:
            return conn.execute(text(SEED_BOOK_SQL), book_data).scalar_one()
    finally:
        engine.dispose()


@pytest.fixture
def insert_book(db_path):
    """Callable inserting a book into the throwaway database."""
    def _insert(book_data):
        return _insert_book(db_path, book_data)
    return _insert


@pytest.fixture
def client(test_config, db_path, sample_book_data):
    """Test client with the books table created and one book seeded."""
    app = create_app(test_config)
    with TestClient(app) as test_client:
        _insert_book(db_path, sample_book_data)
        yield test_client


@pytest.fixture
def book_isbn(client, sample_book_data):
    """Isbn of the seeded book."""
    return sample_book_data["isbn"]


@pytest_asyncio.fixture
async def store(test_config):
    """Book store over an empty books table."""
    engine = build_engine(test_config)
    await init_db(engine)
    yield BookStore(engine)
    await close_db(engine)
