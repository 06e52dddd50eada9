"""
Reviews Router

Endpoints for book reviews and rating statistics.

Endpoints:
- PUT /books/{book_id}/reviews - Create or replace your review (authenticated)
- DELETE /reviews/{review_id} - Delete your review (owner only)
- GET /books/{book_id}/rating - Get book rating statistics
- GET /books/{book_id}/reviews - List a book's reviews (newest first)
- GET /users/me/reviews - List your own reviews (authenticated)

Business rules live in app.services.reviews; this module only maps HTTP onto
those calls.
"""

import logging

from fastapi import APIRouter, Request, Response, status

from app.config import get_settings
from app.dependencies import ActiveUser, DbSession, ListPagination, Recorder
from app.schemas.review import (
    BookRatingStats,
    ReviewListResponse,
    ReviewResponse,
    ReviewUpsert,
    ReviewUpsertResponse,
    UserReviewListResponse,
)
from app.services import reviews as review_service
from app.services.rate_limiter import limiter

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(
    tags=["Reviews"],
    responses={
        404: {"description": "Review or book not found"},
    },
)


@router.put(
    "/books/{book_id}/reviews",
    response_model=ReviewUpsertResponse,
    status_code=status.HTTP_200_OK,
    summary="Create or update your review",
    description=(
        "Create your review of a published book, or replace it if you already "
        "reviewed it. Returns 201 when a new review was created."
    ),
    responses={201: {"description": "Review created"}},
)
@limiter.limit(settings.rate_limit_write)
def upsert_review(
    request: Request,
    response: Response,
    book_id: int,
    review_data: ReviewUpsert,
    db: DbSession,
    current_user: ActiveUser,
    recorder: Recorder,
) -> ReviewUpsertResponse:
    """
    Create or update the current user's review of a book.

    Raises:
        NotFoundError: book missing or not published
        AuthorizationError: the current user wrote the book
    """
    result = review_service.upsert_review(
        db,
        reviewer_id=current_user.id,
        book_id=book_id,
        rating=review_data.rating,
        content=review_data.content,
        recorder=recorder,
    )

    if result.created:
        response.status_code = status.HTTP_201_CREATED
        logger.info(f"Review created: book={book_id} user={current_user.id}")

    return ReviewUpsertResponse(
        review=ReviewResponse.model_validate(result.review),
        created=result.created,
    )


@router.delete(
    "/reviews/{review_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete your review",
    description="Delete a review. Only the review author can delete it.",
)
@limiter.limit(settings.rate_limit_write)
def delete_review(
    request: Request,
    review_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> Response:
    review_service.delete_review(db, reviewer_id=current_user.id, review_id=review_id)
    logger.info(f"Review deleted: id={review_id} user={current_user.id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/books/{book_id}/rating",
    response_model=BookRatingStats,
    summary="Get book rating statistics",
    description="Average rating, review count and the 1-5 star distribution.",
)
@limiter.limit(settings.rate_limit_default)
def get_book_rating(
    request: Request,
    book_id: int,
    db: DbSession,
) -> BookRatingStats:
    return review_service.get_book_rating_stats(db, book_id)


@router.get(
    "/books/{book_id}/reviews",
    response_model=ReviewListResponse,
    summary="List reviews for a book",
    description="Paginated reviews of a published book, newest first, with reviewer info.",
)
@limiter.limit(settings.rate_limit_default)
def list_book_reviews(
    request: Request,
    book_id: int,
    db: DbSession,
    pagination: ListPagination,
) -> ReviewListResponse:
    return review_service.list_book_reviews(
        db,
        book_id,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.get(
    "/users/me/reviews",
    response_model=UserReviewListResponse,
    summary="List your reviews",
    description="Your reviews, newest first, each with a card of the reviewed book.",
)
@limiter.limit(settings.rate_limit_default)
def list_my_reviews(
    request: Request,
    db: DbSession,
    current_user: ActiveUser,
    pagination: ListPagination,
) -> UserReviewListResponse:
    return review_service.list_user_reviews(
        db,
        current_user.id,
        page=pagination.page,
        limit=pagination.limit,
    )
