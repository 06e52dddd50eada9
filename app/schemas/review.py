"""
Review Pydantic Schemas

Schemas for book reviews with ratings.

Schemas:
- ReviewUpsert: Create or replace the caller's review of a book
- ReviewResponse: Review data for API responses
- ReviewUpsertResponse: Review plus whether it was newly created
- BookRatingStats: Aggregated rating statistics for a book
- ReviewListResponse: Paginated reviews of one book
- UserReviewResponse / UserReviewListResponse: The caller's reviews with a
  book card each

Business Rules:
- Rating must be 1-5 (validated at schema level and again in the service)
- One review per user per book (writes are upserts)
"""
# ruff: noqa: I001
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.pagination import PaginatedResponse
from app.schemas.user import UserPublicResponse


class ReviewUpsert(BaseModel):
    """
    Request body for creating or updating a review.

    Example request body:
    {
        "rating": 5,
        "content": "One of the best books I've ever read..."
    }
    """

    rating: int = Field(
        ...,
        ge=1,
        le=5,
        description="Rating from 1 to 5 stars",
        examples=[4, 5],
    )

    content: str | None = Field(
        default=None,
        max_length=5000,
        description="Review text content",
        examples=["This book changed my perspective on..."],
    )

    @field_validator("content")
    @classmethod
    def content_must_not_be_empty_if_provided(cls, v: str | None) -> str | None:
        """Whitespace-only content is stored as no content."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class ReviewResponse(BaseModel):
    """Review as returned by the API."""

    id: int = Field(..., description="Unique review identifier")
    book_id: int = Field(..., description="ID of the reviewed book")
    user_id: int = Field(..., description="ID of the reviewer")
    rating: int = Field(..., ge=1, le=5)
    content: str | None = None
    created_at: datetime
    updated_at: datetime
    user: UserPublicResponse | None = Field(default=None, description="Reviewer")

    model_config = ConfigDict(from_attributes=True)


class ReviewUpsertResponse(BaseModel):
    """Result of an upsert: the stored review and whether it is new."""

    review: ReviewResponse
    created: bool = Field(..., description="True when a new review was created")


class BookRatingStats(BaseModel):
    """
    Aggregated rating statistics for a book.

    average_rating and total_reviews are the denormalized book fields; the
    distribution is counted from the reviews themselves.
    """

    book_id: int = Field(..., description="Book ID")
    average_rating: float = Field(
        ...,
        ge=0,
        le=5,
        description="Average rating (0-5, 0 means no reviews)"
    )
    total_reviews: int = Field(..., ge=0, description="Total number of reviews")
    rating_distribution: dict[int, int] = Field(
        default_factory=lambda: {1: 0, 2: 0, 3: 0, 4: 0, 5: 0},
        description="Count of each rating (1-5)"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "book_id": 42,
                "average_rating": 4.2,
                "total_reviews": 125,
                "rating_distribution": {"1": 5, "2": 10, "3": 20, "4": 40, "5": 50},
            }
        },
    )


class ReviewListResponse(PaginatedResponse):
    """A book's reviews, newest first, with reviewer info."""

    items: list[ReviewResponse] = Field(
        default_factory=list,
        description="Reviews on this page",
    )


class ReviewedBook(BaseModel):
    """Book card attached to a user's own reviews."""

    id: int
    title: str
    cover_image: str | None = None
    status: str
    writer_id: int
    average_rating: float = Field(default=0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)

    model_config = ConfigDict(from_attributes=True)


class UserReviewResponse(ReviewResponse):
    """One of the caller's reviews with the reviewed book."""

    book: ReviewedBook | None = None


class UserReviewListResponse(PaginatedResponse):
    """The caller's reviews, newest first."""

    items: list[UserReviewResponse] = Field(default_factory=list)
