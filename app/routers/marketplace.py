"""
Marketplace Router

Discovery endpoints. Trending and categories are served by the cached
TrendingService; browse and search query the database directly.

Endpoints:
- GET /marketplace/trending - Trending books (?days=7&limit=10)
- GET /marketplace/categories - Categories and genre counts
- GET /marketplace/books - Browse with filters and sort (?sort=highest-rated)
- GET /marketplace/search - Text search (?q=dune)

Trending and categories responses come from the in-memory cache for up to
10 minutes (trending) and 15 minutes (categories), so they may lag recent reviews.
"""

from typing import Any

from fastapi import APIRouter, Query, Request

from app.config import get_settings
from app.dependencies import Browse, DbSession, ListPagination, Trending
from app.schemas.book import BookListResponse, CategoriesResponse, TrendingResponse
from app.services import marketplace
from app.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(prefix="/marketplace", tags=["Marketplace"])


@router.get(
    "/trending",
    response_model=TrendingResponse,
    summary="Trending books",
    description=(
        "Books published in the last `days` days with an average rating of at "
        "least 4.0 and at least 5 reviews, ranked by trending score."
    ),
)
@limiter.limit(settings.rate_limit_default)
def get_trending(
    request: Request,
    db: DbSession,
    trending: Trending,
    days: int = Query(
        default=settings.trending_default_days,
        description=f"Look-back window in days (1-{settings.trending_max_days})",
    ),
    limit: int = Query(
        default=settings.trending_default_limit,
        description=f"Maximum number of books (1-{settings.trending_max_limit})",
    ),
) -> dict[str, Any]:
    return trending.get_trending(db, days=days, limit=limit)


@router.get(
    "/categories",
    response_model=CategoriesResponse,
    summary="Marketplace categories",
    description="Distinct categories of published books and book counts per genre.",
)
@limiter.limit(settings.rate_limit_default)
def get_categories(
    request: Request,
    db: DbSession,
    trending: Trending,
) -> dict[str, Any]:
    return trending.get_categories(db)


@router.get(
    "/books",
    response_model=BookListResponse,
    summary="Browse books",
    description=(
        "Paginated published books with optional filters (category, price range, "
        "minimum rating, language, publication dates) and a sort order: newest, "
        "most-reviewed, highest-rated, price-asc or price-desc."
    ),
)
@limiter.limit(settings.rate_limit_default)
def browse_books(
    request: Request,
    db: DbSession,
    pagination: ListPagination,
    browse: Browse,
) -> BookListResponse:
    return marketplace.browse_books(
        db,
        filters=browse.filters,
        sort=browse.sort,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.get(
    "/search",
    response_model=BookListResponse,
    summary="Search books",
    description=(
        "Published books whose title, description or a genre name contains `q` "
        "(case-insensitive). Title matches come first."
    ),
)
@limiter.limit(settings.rate_limit_default)
def search_books(
    request: Request,
    db: DbSession,
    pagination: ListPagination,
    q: str = Query(
        ...,
        min_length=1,
        max_length=100,
        description="Search text",
        examples=["dystopian"],
    ),
) -> BookListResponse:
    return marketplace.search_books(
        db,
        q,
        page=pagination.page,
        limit=pagination.limit,
    )
