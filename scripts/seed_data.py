#!/usr/bin/env python3
"""
Database Seed Script

Populates the database with sample marketplace data for development.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/seed_data.py

    # Only recompute book rating aggregates (no seeding)
    python scripts/seed_data.py --recalculate-ratings

This script:
1. Connects to the database using app settings
2. Clears existing data (optional)
3. Creates writers, readers, genres and books
4. Writes reviews, follows and activities through the services, so
   aggregates and feed entries look like real traffic
"""

import argparse
import sys
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.database import SessionLocal, create_tables
from app.models import (
    Activity,
    ActivityType,
    Book,
    BookStatus,
    Follow,
    Genre,
    Review,
    User,
    UserRole,
    book_genres,
)
from app.services.activity import ActivityRecorder
from app.services.ratings import recalculate_all_book_ratings
from app.services.reviews import upsert_review
from app.services.social import follow


def clear_data(db: Session) -> None:
    """Clear all existing data from the database."""
    print("Clearing existing data...")
    for table in (Activity, Follow, Review):
        db.execute(delete(table))
    db.execute(delete(book_genres))
    for table in (Book, Genre, User):
        db.execute(delete(table))
    db.commit()
    print("Data cleared.")


def create_users(db: Session) -> tuple[dict[str, User], list[User]]:
    """Create sample writers and readers."""
    print("Creating users...")
    writers_data = [
        {
            "username": "orwell",
            "full_name": "George Orwell",
            "bio": "English novelist and essayist.",
            "profile": "Writes about power, language and truth.",
        },
        {
            "username": "austen",
            "full_name": "Jane Austen",
            "bio": "Novelist of the English landed gentry.",
        },
        {
            "username": "herbert",
            "full_name": "Frank Herbert",
            "bio": "Science fiction author.",
        },
    ]

    writers = {}
    for data in writers_data:
        writer = User(role=UserRole.WRITER.value, **data)
        db.add(writer)
        writers[data["username"]] = writer

    readers = [User(username=f"reader{i}", role=UserRole.READER.value) for i in range(1, 9)]
    db.add_all(readers)
    db.commit()

    print(f"Created {len(writers)} writers and {len(readers)} readers.")
    return writers, readers


def create_genres(db: Session) -> dict[str, Genre]:
    """Create sample genres."""
    print("Creating genres...")
    genres = {name: Genre(name=name) for name in ("Dystopian", "Romance", "Science Fiction", "Classic")}
    db.add_all(genres.values())
    db.commit()
    print(f"Created {len(genres)} genres.")
    return genres


def create_books(
    db: Session,
    writers: dict[str, User],
    genres: dict[str, Genre],
) -> list[Book]:
    """Create sample books, most of them published in the last few days."""
    print("Creating books...")
    now = datetime.now(UTC)
    books_data = [
        ("orwell", "1984", "Fiction", "12.99", ["Dystopian", "Classic"], 2),
        ("orwell", "Animal Farm", "Fiction", "9.99", ["Classic"], 5),
        ("austen", "Pride and Prejudice", "Fiction", "8.99", ["Romance", "Classic"], 1),
        ("austen", "Emma", "Fiction", "10.99", ["Romance"], 40),
        ("herbert", "Dune", "Science Fiction", "14.99", ["Science Fiction"], 3),
        ("herbert", "Dune Messiah", "Science Fiction", "13.99", ["Science Fiction"], None),
    ]

    books = []
    for username, title, category, price, genre_names, days_ago in books_data:
        published = days_ago is not None
        book = Book(
            writer_id=writers[username].id,
            title=title,
            category=category,
            price=Decimal(price),
            language="English",
            status=(BookStatus.PUBLISHED if published else BookStatus.DRAFT).value,
            published_at=now - timedelta(days=days_ago) if published else None,
            genres=[genres[name] for name in genre_names],
        )
        db.add(book)
        books.append(book)

    db.commit()
    print(f"Created {len(books)} books.")
    return books


def create_social_activity(
    db: Session,
    writers: dict[str, User],
    readers: list[User],
    books: list[Book],
) -> None:
    """Follow writers and review their published books through the services."""
    print("Creating follows, reviews and activities...")
    recorder = ActivityRecorder(SessionLocal)

    for book in books:
        if book.is_published:
            recorder.record(
                ActivityType.BOOK_PUBLISHED,
                user_id=book.writer_id,
                target_id=book.id,
                metadata={"title": book.title},
            )

    for i, reader in enumerate(readers):
        for writer in list(writers.values())[: 1 + i % 3]:
            follow(db, reader.id, writer.id)

        for j, book in enumerate(books):
            if book.is_published:
                rating = 5 - (i + j) % 2
                upsert_review(db, reader.id, book.id, rating, recorder=recorder)

    print(f"Activities recorded: {recorder.stats()}")


def seed_database(clear_existing: bool = True) -> None:
    """
    Main function to seed the database.

    Args:
        clear_existing: If True, clear existing data before seeding
    """
    print("=" * 60)
    print("Starting database seed...")
    print("=" * 60)

    create_tables()
    db = SessionLocal()

    try:
        if clear_existing:
            clear_data(db)

        writers, readers = create_users(db)
        genres = create_genres(db)
        books = create_books(db, writers, genres)
        create_social_activity(db, writers, readers, books)

        print("=" * 60)
        print("Database seeding completed successfully!")
        print("=" * 60)
        print("\nSummary:")
        print(f"  - Writers: {len(writers)}")
        print(f"  - Readers: {len(readers)}")
        print(f"  - Genres: {len(genres)}")
        print(f"  - Books: {len(books)}")
        print("\nTrending: http://localhost:8001/api/v1/marketplace/trending")
        print("Browse: http://localhost:8001/api/v1/marketplace/books?sort=highest-rated")
        print("API documentation at http://localhost:8001/docs")

    except Exception as e:
        print(f"Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def recalculate_ratings() -> None:
    """Recompute average_rating / review_count for every book."""
    db = SessionLocal()
    try:
        updated = recalculate_all_book_ratings(db)
        print(f"Recalculated ratings for {updated} books.")
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the discovery database")
    parser.add_argument("--keep", action="store_true", help="Don't clear existing data first")
    parser.add_argument(
        "--recalculate-ratings",
        action="store_true",
        help="Only recompute book rating aggregates",
    )
    args = parser.parse_args()

    if args.recalculate_ratings:
        recalculate_ratings()
    else:
        seed_database(clear_existing=not args.keep)
