"""
Unit tests for the book store.
Exercises validation and SQL mapping against an empty SQLite table.
"""

import pytest

from books_api.errors import ConflictError, NotFoundError, ValidationError
from books_api.models import BookResponse
from books_api.store import BOOK_DELETED


class TestBookStoreCreate:
    """Test cases for BookStore.create."""

    @pytest.mark.asyncio
    async def test_create_returns_persisted_book(self, store, new_book_data):
        """Test that the inserted row is returned."""
        book = await store.create(new_book_data)

        assert isinstance(book, BookResponse)
        assert book.model_dump() == new_book_data

    @pytest.mark.asyncio
    async def test_create_duplicate_isbn(self, store, new_book_data):
        """Test that a second insert with the same isbn raises ConflictError."""
        await store.create(new_book_data)

        with pytest.raises(ConflictError) as exc_info:
            await store.create(new_book_data)

        assert exc_info.value.isbn == new_book_data["isbn"]
        assert len(await store.list_all()) == 1

    @pytest.mark.asyncio
    async def test_create_invalid_payload_touches_nothing(self, store):
        """Test that validation fails before any row is written."""
        with pytest.raises(ValidationError) as exc_info:
            await store.create({"year": 2022})

        assert any(error.startswith("title:") for error in exc_info.value.errors)
        assert any(error.startswith("isbn:") for error in exc_info.value.errors)
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_create_rejects_non_object(self, store):
        """Test that a payload which is not a mapping is rejected."""
        with pytest.raises(ValidationError):
            await store.create(None)


class TestBookStoreRead:
    """Test cases for BookStore.list_all and BookStore.get_by_isbn."""

    @pytest.mark.asyncio
    async def test_list_all_empty(self, store):
        """Test listing an empty table."""
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_list_all_ordered_by_title(self, store, new_book_data, sample_book_data):
        """Test that listing returns every row ordered by title."""
        await store.create(sample_book_data)
        await store.create(new_book_data)

        books = await store.list_all()

        assert [book.title for book in books] == ["Attack Helicopter", "Motha-licka"]

    @pytest.mark.asyncio
    async def test_get_by_isbn(self, store, sample_book_data):
        """Test fetching a stored book."""
        await store.create(sample_book_data)

        book = await store.get_by_isbn(sample_book_data["isbn"])

        assert book.model_dump() == sample_book_data

    @pytest.mark.asyncio
    async def test_get_by_isbn_not_found(self, store):
        """Test that an unknown isbn raises NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            await store.get_by_isbn("900000")

        assert exc_info.value.isbn == "900000"


class TestBookStoreUpdate:
    """Test cases for BookStore.update."""

    @pytest.mark.asyncio
    async def test_update(self, store, sample_book_data, update_book_data):
        """Test replacing every non-key field."""
        await store.create(sample_book_data)

        book = await store.update(sample_book_data["isbn"], update_book_data)

        assert book.isbn == sample_book_data["isbn"]
        assert book.title == "ATTACK! Helicopter"
        stored = await store.get_by_isbn(sample_book_data["isbn"])
        assert stored == book

    @pytest.mark.asyncio
    async def test_update_rejects_isbn_change(self, store, sample_book_data, update_book_data):
        """Test that a different isbn in the payload is rejected."""
        await store.create(sample_book_data)
        update_book_data["isbn"] = "987654321"

        with pytest.raises(ValidationError) as exc_info:
            await store.update(sample_book_data["isbn"], update_book_data)

        assert exc_info.value.errors == ["isbn: cannot be changed"]
        stored = await store.get_by_isbn(sample_book_data["isbn"])
        assert stored.model_dump() == sample_book_data

    @pytest.mark.asyncio
    async def test_update_rejects_unchanged_isbn(self, store, sample_book_data, update_book_data):
        """Test that repeating the stored isbn in the payload is rejected too."""
        await store.create(sample_book_data)
        update_book_data["isbn"] = sample_book_data["isbn"]

        with pytest.raises(ValidationError) as exc_info:
            await store.update(sample_book_data["isbn"], update_book_data)

        assert exc_info.value.errors == ["isbn: cannot be changed"]
        stored = await store.get_by_isbn(sample_book_data["isbn"])
        assert stored.model_dump() == sample_book_data

    @pytest.mark.asyncio
    async def test_update_not_found(self, store, update_book_data):
        """Test that updating an unknown isbn raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await store.update("900000", update_book_data)

    @pytest.mark.asyncio
    async def test_update_validates_before_lookup(self, store):
        """Test that an invalid payload fails even when the isbn is unknown."""
        with pytest.raises(ValidationError):
            await store.update("900000", {"title": ""})


class TestBookStoreDelete:
    """Test cases for BookStore.delete."""

    @pytest.mark.asyncio
    async def test_delete(self, store, sample_book_data):
        """Test deleting a stored book."""
        await store.create(sample_book_data)

        result = await store.delete(sample_book_data["isbn"])

        assert result.message == BOOK_DELETED
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_twice(self, store, sample_book_data):
        """Test that the second delete raises NotFoundError."""
        await store.create(sample_book_data)
        await store.delete(sample_book_data["isbn"])

        with pytest.raises(NotFoundError):
            await store.delete(sample_book_data["isbn"])


class TestBookStoreHealth:
    """Test cases for BookStore.health_check."""

    @pytest.mark.asyncio
    async def test_health_check(self, store, sample_book_data):
        """Test health check on a reachable database."""
        await store.create(sample_book_data)

        health = await store.health_check()

        assert health["status"] == "healthy"
        assert health["books_count"] == 1

    @pytest.mark.asyncio
    async def test_health_check_missing_table(self, store):
        """Test health check reports a missing table without raising."""
        async with store.engine.begin() as conn:
            await conn.exec_driver_sql("DROP TABLE books")

        health = await store.health_check()

        assert health["status"] == "unhealthy"
        assert "error" in health
