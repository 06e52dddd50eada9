"""
Trending Service

Ranks recently published books and lists marketplace categories. Both
results are cached in the injected TTLCache.

Trending
========
Eligible books are published within the last `days` days, rated at least
4.0 on average and reviewed at least 5 times. Each is scored as

    score = average_rating * 10 + review_count * 2 + age_in_days

and ranked by score, then average rating, then review count (all
descending). Note the age term: among eligible books, an older one scores
slightly higher than an otherwise identical newer one. The formula is kept
as is.

Writer cards for the ranked books are loaded with one batched lookup over
the distinct writer IDs.

Caching
=======
- "trending:{days}:{limit}": 10 minutes
- "categories": 15 minutes

A cache hit returns the stored payload itself, so two calls inside the TTL
return identical payloads even if books change in between. Storage errors
are logged and answered with an empty result that is not cached.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.exceptions import ValidationError
from app.models import Book, BookStatus, Genre, book_genres
from app.schemas.book import (
    CategoriesResponse,
    GenreCount,
    TrendingBook,
    TrendingResponse,
)
from app.services.cache import TTLCache, make_cache_key
from app.services.marketplace import as_utc, book_card
from app.services.social import get_writer_summaries

logger = logging.getLogger(__name__)
settings = get_settings()

SECONDS_PER_DAY = 60 * 60 * 24
CATEGORIES_CACHE_KEY = "categories"


def utcnow() -> datetime:
    return datetime.now(UTC)


def age_in_days(published_at: datetime, now: datetime) -> float:
    return (now - as_utc(published_at)).total_seconds() / SECONDS_PER_DAY


def trending_score(
    average_rating: Decimal | float,
    review_count: int,
    published_at: datetime,
    now: datetime,
) -> float:
    """Weighted trending score of one book at instant `now`."""
    return (
        float(average_rating) * 10
        + review_count * 2
        + age_in_days(published_at, now)
    )


class TrendingService:
    """
    Trending ranking and category listing over published books.

    Args:
        cache: Cache shared with the rest of the process
        clock: Returns the current UTC time (injectable for tests)
        trending_ttl: Seconds a trending ranking stays cached
        categories_ttl: Seconds the categories listing stays cached
    """

    def __init__(
        self,
        cache: TTLCache,
        clock: Callable[[], datetime] = utcnow,
        trending_ttl: int | None = None,
        categories_ttl: int | None = None,
    ) -> None:
        self.cache = cache
        self.clock = clock
        self.trending_ttl = settings.trending_cache_ttl if trending_ttl is None else trending_ttl
        self.categories_ttl = (
            settings.categories_cache_ttl if categories_ttl is None else categories_ttl
        )

    # -------------------------------------------------------------------------
    # Trending
    # -------------------------------------------------------------------------
    def get_trending(
        self,
        db: Session,
        days: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """
        Trending books over the last `days` days.

        Args:
            db: Database session
            days: Window size in days (1-365, default 7)
            limit: Maximum number of books (1-50, default 10)

        Returns:
            {"items": [...]} as a JSON-compatible dict

        Raises:
            ValidationError: days or limit out of range
        """
        if days is None:
            days = settings.trending_default_days
        if limit is None:
            limit = settings.trending_default_limit
        if not 1 <= days <= settings.trending_max_days:
            raise ValidationError(f"days must be between 1 and {settings.trending_max_days}")
        if not 1 <= limit <= settings.trending_max_limit:
            raise ValidationError(f"limit must be between 1 and {settings.trending_max_limit}")

        cache_key = make_cache_key("trending", days, limit)
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            payload = self._compute_trending(db, days, limit)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Trending books unavailable: {e}")
            return TrendingResponse().model_dump(mode="json")

        self.cache.set(cache_key, payload, ttl=self.trending_ttl)
        return payload

    def _compute_trending(self, db: Session, days: int, limit: int) -> dict[str, Any]:
        now = self.clock()
        cutoff = now - timedelta(days=days)

        stmt = (
            select(Book)
            .options(selectinload(Book.genres))
            .where(Book.status == BookStatus.PUBLISHED.value)
            .where(Book.published_at.isnot(None))
            .where(Book.published_at >= cutoff)
            .where(Book.average_rating >= Decimal(str(settings.trending_min_rating)))
            .where(Book.review_count >= settings.trending_min_reviews)
        )
        books = db.execute(stmt).scalars().all()

        scored = [
            (trending_score(book.average_rating, book.review_count, book.published_at, now), book)
            for book in books
        ]
        scored.sort(
            key=lambda pair: (
                pair[0],
                float(pair[1].average_rating),
                pair[1].review_count,
            ),
            reverse=True,
        )
        scored = scored[:limit]

        writers = get_writer_summaries(db, [book.writer_id for _, book in scored])

        items = [
            TrendingBook(
                **book_card(book, writers.get(book.writer_id)),
                trending_score=round(score, 4),
            )
            for score, book in scored
        ]

        logger.debug(f"Computed trending ranking: days={days} limit={limit} -> {len(items)} books")
        return TrendingResponse(items=items).model_dump(mode="json")

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------
    def get_categories(self, db: Session) -> dict[str, Any]:
        """
        Distinct categories and per-genre book counts over published books.

        Returns:
            {"categories": [...], "genres": [{"name", "count"}, ...]}
        """
        cached = self.cache.get(CATEGORIES_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            payload = self._compute_categories(db)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(f"Categories unavailable: {e}")
            return CategoriesResponse().model_dump(mode="json")

        self.cache.set(CATEGORIES_CACHE_KEY, payload, ttl=self.categories_ttl)
        return payload

    def _compute_categories(self, db: Session) -> dict[str, Any]:
        published = Book.status == BookStatus.PUBLISHED.value

        category_stmt = (
            select(Book.category)
            .where(published, Book.category.isnot(None))
            .distinct()
        )
        categories = sorted(db.execute(category_stmt).scalars().all())

        book_count = func.count(Book.id).label("book_count")
        genre_stmt = (
            select(Genre.name, book_count)
            .join(book_genres, book_genres.c.genre_id == Genre.id)
            .join(Book, Book.id == book_genres.c.book_id)
            .where(published)
            .group_by(Genre.name)
            .order_by(book_count.desc(), Genre.name)
        )
        genres = [GenreCount(name=name, count=count) for name, count in db.execute(genre_stmt).all()]

        return CategoriesResponse(categories=categories, genres=genres).model_dump(mode="json")
