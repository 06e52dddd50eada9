"""
Marketplace Browse Service

Uncached read paths over published books:

- browse_books: paginated listing with optional filters and a sort order
  (newest first by default)
- search_books: case-insensitive match over title, description and genre
  names, title matches ranked first

Every page attaches writer cards loaded with one batched lookup
(get_writer_summaries), whatever the page size. Unlike trending, these
results are never cached, so they always reflect the latest ratings.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, case, func, or_, select
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.exceptions import ValidationError
from app.models import Book, BookStatus, Genre, book_genres
from app.schemas.book import BookListResponse, BookSort, BookSummary
from app.schemas.user import WriterSummary
from app.services.pagination import offset_for, validate_pagination
from app.services.social import get_writer_summaries

logger = logging.getLogger(__name__)
settings = get_settings()

SORT_ORDERS = {
    BookSort.NEWEST: (Book.published_at.desc(), Book.id.desc()),
    BookSort.MOST_REVIEWED: (
        Book.review_count.desc(),
        Book.published_at.desc(),
        Book.id.desc(),
    ),
    BookSort.HIGHEST_RATED: (
        Book.average_rating.desc(),
        Book.review_count.desc(),
        Book.published_at.desc(),
        Book.id.desc(),
    ),
    BookSort.PRICE_ASC: (
        Book.price.asc().nulls_last(),
        Book.published_at.desc(),
        Book.id.desc(),
    ),
    BookSort.PRICE_DESC: (
        Book.price.desc().nulls_last(),
        Book.published_at.desc(),
        Book.id.desc(),
    ),
}


# =============================================================================
# Helper Functions
# =============================================================================


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; they're stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def book_card(book: Book, writer: WriterSummary | None) -> dict[str, Any]:
    """Fields shared by every published book card (browse, search, trending)."""
    return {
        "id": book.id,
        "title": book.title,
        "description": book.description,
        "category": book.category,
        "price": float(book.price) if book.price is not None else None,
        "cover_image": book.cover_image,
        "genres": sorted(genre.name for genre in book.genres),
        "language": book.language,
        "pages": book.pages,
        "average_rating": float(book.average_rating or 0),
        "review_count": book.review_count,
        "published_at": as_utc(book.published_at) if book.published_at else None,
        "writer": writer,
    }


@dataclass
class BookFilters:
    """
    Optional browse filters. Unset fields don't filter.

    Price and date bounds are inclusive; min_rating compares against the
    denormalized average rating.
    """

    category: str | None = None
    min_price: Decimal | float | None = None
    max_price: Decimal | float | None = None
    min_rating: float | None = None
    language: str | None = None
    published_after: datetime | None = None
    published_before: datetime | None = None

    def validate(self) -> None:
        """
        Raises:
            ValidationError: a bound is out of range or a range is inverted
        """
        for name in ("min_price", "max_price"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValidationError(f"{name} cannot be negative")
        if self.min_rating is not None and not 0 <= self.min_rating <= 5:
            raise ValidationError("min_rating must be between 0 and 5")
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValidationError("min_price cannot be greater than max_price")
        if (
            self.published_after is not None
            and self.published_before is not None
            and as_utc(self.published_after) > as_utc(self.published_before)
        ):
            raise ValidationError("published_after cannot be later than published_before")


def apply_book_filters(stmt: Select, filters: BookFilters) -> Select:
    """Add a WHERE clause for every filter that is set."""
    if filters.category:
        stmt = stmt.where(Book.category == filters.category)
    if filters.min_price is not None:
        stmt = stmt.where(Book.price >= Decimal(str(filters.min_price)))
    if filters.max_price is not None:
        stmt = stmt.where(Book.price <= Decimal(str(filters.max_price)))
    if filters.min_rating is not None:
        stmt = stmt.where(Book.average_rating >= Decimal(str(filters.min_rating)))
    if filters.language:
        stmt = stmt.where(Book.language == filters.language)
    if filters.published_after is not None:
        stmt = stmt.where(Book.published_at >= as_utc(filters.published_after).astimezone(UTC))
    if filters.published_before is not None:
        stmt = stmt.where(Book.published_at <= as_utc(filters.published_before).astimezone(UTC))
    return stmt


def _published_books() -> Select:
    return select(Book).where(Book.status == BookStatus.PUBLISHED.value)


def _paginate_books(
    db: Session,
    stmt: Select,
    order_by: tuple,
    page: int,
    limit: int,
) -> BookListResponse:
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total = db.execute(count_stmt).scalar() or 0
    if total == 0:
        return BookListResponse.build([], total=0, page=page, limit=limit)

    page_stmt = (
        stmt.options(selectinload(Book.genres))
        .order_by(*order_by)
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    books = db.execute(page_stmt).scalars().all()

    writers = get_writer_summaries(db, [book.writer_id for book in books])
    items = [BookSummary(**book_card(book, writers.get(book.writer_id))) for book in books]

    return BookListResponse.build(items, total=total, page=page, limit=limit)


# =============================================================================
# Queries
# =============================================================================


def browse_books(
    db: Session,
    filters: BookFilters | None = None,
    sort: BookSort = BookSort.NEWEST,
    page: int = 1,
    limit: int | None = None,
) -> BookListResponse:
    """
    Published books matching filters, in the requested order.

    Args:
        db: Database session
        filters: Optional BookFilters (None lists everything)
        sort: One of BookSort; ties fall back to newest first
        page: 1-indexed page number
        limit: Page size (defaults to browse_default_limit)

    Returns:
        BookListResponse with writer cards attached

    Raises:
        ValidationError: invalid pagination or filter values
    """
    if limit is None:
        limit = settings.browse_default_limit
    validate_pagination(page, limit, settings.list_max_limit)

    stmt = _published_books()
    if filters is not None:
        filters.validate()
        stmt = apply_book_filters(stmt, filters)

    result = _paginate_books(db, stmt, SORT_ORDERS[BookSort(sort)], page, limit)
    logger.debug(f"Browse sort={BookSort(sort).value} page={page} -> {result.total} books")
    return result


def search_books(
    db: Session,
    query: str,
    page: int = 1,
    limit: int | None = None,
) -> BookListResponse:
    """
    Published books whose title, description or a genre name contains query.

    Books matching on title come first, then newest first.

    Raises:
        ValidationError: blank query or invalid pagination
    """
    if limit is None:
        limit = settings.browse_default_limit
    validate_pagination(page, limit, settings.list_max_limit)

    term = (query or "").strip().lower()
    if not term:
        raise ValidationError("Search query must not be empty")
    pattern = f"%{term}%"

    genre_book_ids = (
        select(book_genres.c.book_id)
        .join(Genre, Genre.id == book_genres.c.genre_id)
        .where(func.lower(Genre.name).like(pattern))
    )
    title_match = func.lower(Book.title).like(pattern)

    stmt = _published_books().where(
        or_(
            title_match,
            func.lower(Book.description).like(pattern),
            Book.id.in_(genre_book_ids),
        )
    )
    order_by = (
        case((title_match, 0), else_=1),
        Book.published_at.desc(),
        Book.id.desc(),
    )

    result = _paginate_books(db, stmt, order_by, page, limit)
    logger.debug(f"Search q={term!r} page={page} -> {result.total} books")
    return result
