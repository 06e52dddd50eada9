"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

WHY Separate Schemas from SQLAlchemy Models?
============================================
1. Security: Control exactly what data is exposed in API responses
2. Validation: Different rules for requests vs responses
3. Decoupling: Database schema can evolve independently of API
4. Documentation: Schemas generate OpenAPI documentation
"""

from app.schemas.book import (
    BookListResponse,
    BookSort,
    BookSummary,
    CategoriesResponse,
    GenreCount,
    TrendingBook,
    TrendingResponse,
)
from app.schemas.feed import FeedItem, FeedPage
from app.schemas.pagination import PaginatedResponse
from app.schemas.review import (
    BookRatingStats,
    ReviewedBook,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpsert,
    ReviewUpsertResponse,
    UserReviewListResponse,
    UserReviewResponse,
)
from app.schemas.social import (
    FollowCounts,
    FollowerListResponse,
    FollowingListResponse,
    FollowResult,
    FollowStatus,
)
from app.schemas.user import FeedActor, UserPublicResponse, WriterSummary

__all__ = [
    "BookListResponse",
    "BookSort",
    "BookSummary",
    "CategoriesResponse",
    "GenreCount",
    "TrendingBook",
    "TrendingResponse",
    "FeedItem",
    "FeedPage",
    "PaginatedResponse",
    "BookRatingStats",
    "ReviewedBook",
    "ReviewListResponse",
    "ReviewResponse",
    "ReviewUpsert",
    "ReviewUpsertResponse",
    "UserReviewListResponse",
    "UserReviewResponse",
    "FollowCounts",
    "FollowerListResponse",
    "FollowingListResponse",
    "FollowResult",
    "FollowStatus",
    "FeedActor",
    "UserPublicResponse",
    "WriterSummary",
]
