"""
SQLAlchemy Models Package

This package contains all database models for the discovery engine.

Model Relationships:
- User -> Book: One-to-Many (a writer owns many books)
- Genre <-> Book: Many-to-Many
- User -> Review <- Book: a review links one reader to one book
- User -> Follow -> User: directed follow edges
- User -> Activity: append-only feed events

Import all models here to:
1. Make them available as: from app.models import Book, Review, Follow
2. Ensure Alembic discovers them for migrations
"""

# The order matters for SQLAlchemy to resolve relationships
from app.models.user import User, UserRole
from app.models.genre import Genre
from app.models.book import Book, BookStatus, book_genres
from app.models.review import Review
from app.models.follow import Follow
from app.models.activity import Activity, ActivityType

__all__ = [
    "User",
    "UserRole",
    "Genre",
    "Book",
    "BookStatus",
    "book_genres",
    "Review",
    "Follow",
    "Activity",
    "ActivityType",
]
