"""
Reviews Service

Review mutations and the rating aggregation that follows each of them.

- upsert_review: create the caller's review of a book, or replace it
- delete_review: remove one of the caller's reviews
- get_book_rating_stats: average, count and 1-5 distribution
- list_book_reviews: a published book's reviews, newest first
- list_user_reviews: one user's reviews with the reviewed books

Every mutation commits the review first and then recomputes the book's
denormalized rating fields (see app.services.ratings). A new review also
records a best-effort review_created activity.

Business Rules:
- One review per user per book: a second write updates the first
- Only published books can be reviewed
- Writers cannot review their own books
- Only the review author can delete a review
"""

import logging
from typing import NamedTuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.exceptions import (
    AuthorizationError,
    NotFoundError,
    TransientStorageError,
    ValidationError,
)
from app.models import ActivityType, Book, Review, User
from app.schemas.review import (
    BookRatingStats,
    ReviewListResponse,
    ReviewResponse,
    UserReviewListResponse,
    UserReviewResponse,
)
from app.services.activity import ActivityRecorder
from app.services.pagination import offset_for, validate_pagination
from app.services.ratings import recalculate_book_rating

logger = logging.getLogger(__name__)
settings = get_settings()

MIN_RATING = 1
MAX_RATING = 5


class ReviewUpsertResult(NamedTuple):
    review: Review
    created: bool


# =============================================================================
# Helper Functions
# =============================================================================


def validate_rating(rating) -> int:
    """Reject anything that isn't an integer from 1 to 5."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return rating


def get_published_book_or_404(db: Session, book_id: int) -> Book:
    book = db.get(Book, book_id)
    if book is None or not book.is_published:
        raise NotFoundError(f"Book with id {book_id} not found")
    return book


def get_review_or_404(db: Session, review_id: int) -> Review:
    """Get a review by ID with its author loaded, or raise NotFoundError."""
    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.id == review_id)
    )
    review = db.execute(stmt).scalar_one_or_none()
    if review is None:
        raise NotFoundError(f"Review with id {review_id} not found")
    return review


def _find_review(db: Session, book_id: int, reviewer_id: int) -> Review | None:
    stmt = select(Review).where(
        Review.book_id == book_id,
        Review.user_id == reviewer_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def _refresh_aggregates(db: Session, book_id: int) -> None:
    try:
        recalculate_book_rating(db, book_id)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Rating aggregation for book {book_id} failed: {e}")
        raise TransientStorageError("Failed to update book rating") from e


# =============================================================================
# Mutations
# =============================================================================


def upsert_review(
    db: Session,
    reviewer_id: int,
    book_id: int,
    rating: int,
    content: str | None = None,
    recorder: ActivityRecorder | None = None,
) -> ReviewUpsertResult:
    """
    Create or update reviewer_id's review of book_id.

    Args:
        db: Database session
        reviewer_id: The acting user
        book_id: The book being reviewed
        rating: 1-5 stars
        content: Optional review text
        recorder: Receives review_created when a new review is stored

    Returns:
        ReviewUpsertResult(review, created)

    Raises:
        ValidationError: rating outside 1-5
        NotFoundError: reviewer or published book doesn't exist
        AuthorizationError: the reviewer wrote the book
        TransientStorageError: the review or aggregate write failed
    """
    validate_rating(rating)
    if db.get(User, reviewer_id) is None:
        raise NotFoundError(f"User with id {reviewer_id} not found")
    book = get_published_book_or_404(db, book_id)

    if book.writer_id == reviewer_id:
        raise AuthorizationError("Writers cannot review their own books")

    try:
        review = _find_review(db, book_id, reviewer_id)
        created = review is None

        if created:
            review = Review(
                book_id=book_id,
                user_id=reviewer_id,
                rating=rating,
                content=content,
            )
            db.add(review)
        else:
            review.rating = rating
            review.content = content

        try:
            db.commit()
        except IntegrityError:
            # A concurrent first review by the same user won the insert
            db.rollback()
            review = _find_review(db, book_id, reviewer_id)
            if review is None:
                raise
            review.rating = rating
            review.content = content
            db.commit()
            created = False
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Saving review of book {book_id} by user {reviewer_id} failed: {e}")
        raise TransientStorageError("Failed to save review") from e

    _refresh_aggregates(db, book_id)

    if created and recorder is not None:
        recorder.record(
            ActivityType.REVIEW_CREATED,
            user_id=reviewer_id,
            target_id=book_id,
            metadata={"rating": rating},
        )

    db.refresh(review)
    return ReviewUpsertResult(review=review, created=created)


def delete_review(db: Session, reviewer_id: int, review_id: int) -> None:
    """
    Delete one of reviewer_id's reviews and recompute the book's rating.

    Raises:
        NotFoundError: the review doesn't exist
        AuthorizationError: the review belongs to someone else
        TransientStorageError: the delete or aggregate write failed
    """
    review = get_review_or_404(db, review_id)

    if review.user_id != reviewer_id:
        raise AuthorizationError("You can only delete your own reviews")

    book_id = review.book_id
    try:
        db.delete(review)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Deleting review {review_id} failed: {e}")
        raise TransientStorageError("Failed to delete review") from e

    _refresh_aggregates(db, book_id)


# =============================================================================
# Queries
# =============================================================================


def get_book_rating_stats(db: Session, book_id: int) -> BookRatingStats:
    """
    Rating statistics for a book.

    average_rating and total_reviews come from the denormalized fields;
    the distribution is counted from the reviews.
    """
    book = get_published_book_or_404(db, book_id)

    distribution = {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}
    dist_stmt = (
        select(Review.rating, func.count(Review.id))
        .where(Review.book_id == book_id)
        .group_by(Review.rating)
    )
    for rating, count in db.execute(dist_stmt).all():
        distribution[rating] = count

    return BookRatingStats(
        book_id=book_id,
        average_rating=float(book.average_rating or 0),
        total_reviews=book.review_count,
        rating_distribution=distribution,
    )


def list_book_reviews(
    db: Session,
    book_id: int,
    page: int = 1,
    limit: int | None = None,
) -> ReviewListResponse:
    """
    A published book's reviews, newest first, with reviewer info.

    Raises:
        ValidationError: invalid page or limit
        NotFoundError: the book doesn't exist or isn't published
    """
    if limit is None:
        limit = settings.reviews_default_limit
    validate_pagination(page, limit, settings.list_max_limit)
    get_published_book_or_404(db, book_id)

    count_stmt = select(func.count(Review.id)).where(Review.book_id == book_id)
    total = db.execute(count_stmt).scalar() or 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user))
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    reviews = db.execute(stmt).scalars().all()

    return ReviewListResponse.build(
        [ReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=page,
        limit=limit,
    )


def list_user_reviews(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int | None = None,
) -> UserReviewListResponse:
    """
    Reviews written by user_id, newest first, each with a card of the
    reviewed book (including its status, since a book can be unpublished
    after it was reviewed).

    Raises:
        ValidationError: invalid page or limit
    """
    if limit is None:
        limit = settings.reviews_default_limit
    validate_pagination(page, limit, settings.list_max_limit)

    count_stmt = select(func.count(Review.id)).where(Review.user_id == user_id)
    total = db.execute(count_stmt).scalar() or 0

    stmt = (
        select(Review)
        .options(selectinload(Review.user), selectinload(Review.book))
        .where(Review.user_id == user_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    reviews = db.execute(stmt).scalars().all()

    return UserReviewListResponse.build(
        [UserReviewResponse.model_validate(r) for r in reviews],
        total=total,
        page=page,
        limit=limit,
    )
