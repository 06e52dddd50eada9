"""
Book Discovery Schemas

Shapes returned by the marketplace discovery endpoints:

- BookSummary: a published book with its writer card
- BookListResponse: a page of BookSummary from browse or search
- BookSort: sort orders accepted by the browse endpoint
- TrendingResponse: {"items": [BookSummary, ...]}
- GenreCount / CategoriesResponse: the category and genre listing

Trending and categories payloads are cached as plain JSON-compatible
dicts (model_dump(mode="json")), so a cache hit returns exactly what the
first computation produced.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from app.schemas.pagination import PaginatedResponse
from app.schemas.user import WriterSummary


class BookSummary(BaseModel):
    """Published book card."""

    id: int
    title: str
    description: str | None = None
    category: str | None = None
    price: float | None = None
    cover_image: str | None = None
    genres: list[str] = Field(default_factory=list)
    language: str | None = None
    pages: int | None = None
    average_rating: float = Field(default=0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    published_at: datetime | None = None
    writer: WriterSummary | None = None


class BookSort(str, Enum):
    """Sort orders for marketplace browsing."""

    NEWEST = "newest"
    MOST_REVIEWED = "most-reviewed"
    HIGHEST_RATED = "highest-rated"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"


class BookListResponse(PaginatedResponse):
    """Paginated published books."""

    items: list[BookSummary] = Field(default_factory=list)


class TrendingBook(BookSummary):
    """Book card with the score it was ranked by."""

    trending_score: float = Field(..., description="Weighted trending score")


class TrendingResponse(BaseModel):
    items: list[TrendingBook] = Field(default_factory=list)


class GenreCount(BaseModel):
    name: str
    count: int = Field(..., ge=0)


class CategoriesResponse(BaseModel):
    categories: list[str] = Field(default_factory=list)
    genres: list[GenreCount] = Field(default_factory=list)
