#!/usr/bin/env python3
"""
Books Table Management Utility

This script provides utilities to manage the books table:
- Create the books table if it is missing
- List all stored books
- Show table statistics
"""

import asyncio
import sys

from books_api.config import config
from books_api.database import build_engine, close_db, init_db
from books_api.store import BookStore
from utilities.logger import setup_logging


async def create_table():
    """Create the books table."""
    engine = build_engine(config)
    try:
        await init_db(engine)
        print("✅ Books table is ready")
    finally:
        await close_db(engine)


async def list_books():
    """List all books in the database."""
    print("\n" + "=" * 80)
    print("📋 ALL BOOKS")
    print("=" * 80)

    engine = build_engine(config)
    try:
        books = await BookStore(engine).list_all()

        if not books:
            print("❌ No books found in database")
            return

        print(f"✅ Found {len(books)} books:")
        print()

        for i, book in enumerate(books, 1):
            print(f"{i:3d}. {book.title} ({book.year})")
            print(f"     ISBN: {book.isbn}")
            print(f"     Author: {book.author}")
            print(f"     Publisher: {book.publisher}")
            print()
    finally:
        await close_db(engine)


async def show_statistics():
    """Show books table statistics."""
    engine = build_engine(config)
    try:
        health = await BookStore(engine).health_check()
    finally:
        await close_db(engine)

    if health["status"] != "healthy":
        print(f"❌ Database unavailable: {health.get('error')}")
        sys.exit(1)

    print(f"📊 Books stored: {health['books_count']}")


async def main():
    """Main function."""
    if len(sys.argv) < 2:
        print("Usage: python manage_db.py [init|list|stats]")
        print()
        print("Commands:")
        print("  init     - Create the books table if it does not exist")
        print("  list     - List all books")
        print("  stats    - Show table statistics")
        sys.exit(1)

    command = sys.argv[1].lower()

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    if command == "init":
        await create_table()
    elif command == "list":
        await list_books()
    elif command == "stats":
        await show_statistics()
    else:
        print(f"❌ Unknown command: {command}")
        print("Available commands: init, list, stats")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
