"""
Ratings Service

Service for managing book rating aggregations.

This service maintains denormalized rating fields on the Book model:
- average_rating: The mean of all review ratings, rounded to 2 decimals
  (0 when the book has no reviews)
- review_count: Total number of reviews

These fields are recomputed after reviews are created, updated, or deleted.
The recomputation is a separate step that runs after the review write has
committed, not part of the same transaction. Two reviewers writing to the
same book at the same time can each read a review set that misses the
other's review; the next mutation on that book repairs the aggregate.
If the aggregate write itself fails the error propagates and the fields
stay stale until the next successful mutation.
"""

from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import Book
from app.models.review import Review

TWO_PLACES = Decimal("0.01")


def round_rating(value) -> Decimal:
    """Round a mean rating to 2 decimal places (half up)."""
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def recalculate_book_rating(db: Session, book_id: int) -> Book | None:
    """
    Recalculate and update a book's rating aggregations.

    Args:
        db: Database session
        book_id: ID of the book to update

    Returns:
        The updated book, or None if it no longer exists

    Note:
        This function commits the changes to the database.
    """
    stmt = select(
        func.sum(Review.rating),
        func.count(Review.id),
    ).where(Review.book_id == book_id)

    rating_sum, review_count = db.execute(stmt).one()

    book = db.get(Book, book_id)
    if book is None:
        return None

    # Mean from the integer sum so the rounding doesn't depend on the
    # database's AVG precision
    if review_count:
        book.average_rating = round_rating(Decimal(rating_sum) / Decimal(review_count))
    else:
        book.average_rating = Decimal("0")
    book.review_count = review_count
    db.commit()
    return book


def recalculate_all_book_ratings(db: Session) -> int:
    """
    Recalculate rating aggregations for all books.

    There is no background reconciliation job; this is the operator's tool
    for repairing aggregates left stale by failed or concurrent writes.

    Args:
        db: Database session

    Returns:
        Number of books updated
    """
    book_ids = db.execute(select(Book.id)).scalars().all()

    for book_id in book_ids:
        recalculate_book_rating(db, book_id)

    return len(book_ids)
