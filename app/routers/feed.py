"""
Feed Router

Endpoints:
- GET /feed - Activities of the users you follow (authenticated)
- GET /feed/global - Every activity

Both are newest first and paginated with ?page=&limit= (limit max 100).
"""

from fastapi import APIRouter, Request

from app.config import get_settings
from app.dependencies import ActiveUser, DbSession, Pagination
from app.schemas.feed import FeedPage
from app.services import feed as feed_service
from app.services.rate_limiter import limiter

settings = get_settings()

router = APIRouter(prefix="/feed", tags=["Feed"])


@router.get(
    "",
    response_model=FeedPage,
    summary="Your personal feed",
    description="Activities of the users you follow, newest first.",
)
@limiter.limit(settings.rate_limit_default)
def personal_feed(
    request: Request,
    db: DbSession,
    current_user: ActiveUser,
    pagination: Pagination,
) -> FeedPage:
    return feed_service.get_personal_feed(
        db,
        current_user.id,
        page=pagination.page,
        limit=pagination.limit,
    )


@router.get(
    "/global",
    response_model=FeedPage,
    summary="Global feed",
    description="Every activity on the marketplace, newest first.",
)
@limiter.limit(settings.rate_limit_default)
def global_feed(
    request: Request,
    db: DbSession,
    pagination: Pagination,
) -> FeedPage:
    return feed_service.get_global_feed(db, page=pagination.page, limit=pagination.limit)
