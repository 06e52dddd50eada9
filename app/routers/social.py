"""
Social Router

Follow graph endpoints.

Endpoints:
- GET /users/me/following - Users the current user follows (writer cards)
- POST /users/{user_id}/follow - Follow a user (idempotent)
- DELETE /users/{user_id}/follow - Unfollow a user (idempotent)
- GET /users/{user_id}/follow - Whether the current user follows user_id
- GET /users/{user_id}/followers - A user's followers
- GET /users/{user_id}/follow-counts - Follower and following counts
"""

import logging

from fastapi import APIRouter, Request

from app.config import get_settings
from app.dependencies import ActiveUser, DbSession
from app.schemas.social import (
    FollowCounts,
    FollowerListResponse,
    FollowingListResponse,
    FollowResult,
    FollowStatus,
)
from app.services import social as social_service
from app.services.rate_limiter import limiter

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter(
    prefix="/users",
    tags=["Social"],
    responses={
        404: {"description": "User not found"},
    },
)


# /users/me/... is declared before /users/{user_id}/... routes
@router.get(
    "/me/following",
    response_model=FollowingListResponse,
    summary="List who you follow",
)
@limiter.limit(settings.rate_limit_default)
def list_my_following(
    request: Request,
    db: DbSession,
    current_user: ActiveUser,
) -> FollowingListResponse:
    items = social_service.list_following(db, current_user.id)
    return FollowingListResponse(items=items, total=len(items))


@router.post(
    "/{user_id}/follow",
    response_model=FollowResult,
    summary="Follow a user",
    description="Follow a user. Following someone you already follow is a no-op.",
    responses={409: {"description": "Cannot follow yourself"}},
)
@limiter.limit(settings.rate_limit_write)
def follow_user(
    request: Request,
    user_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> FollowResult:
    return social_service.follow(db, follower_id=current_user.id, following_id=user_id)


@router.delete(
    "/{user_id}/follow",
    response_model=FollowResult,
    summary="Unfollow a user",
    description="Unfollow a user. Unfollowing someone you don't follow is a no-op.",
)
@limiter.limit(settings.rate_limit_write)
def unfollow_user(
    request: Request,
    user_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> FollowResult:
    return social_service.unfollow(db, follower_id=current_user.id, following_id=user_id)


@router.get(
    "/{user_id}/follow",
    response_model=FollowStatus,
    summary="Check follow status",
)
@limiter.limit(settings.rate_limit_default)
def get_follow_status(
    request: Request,
    user_id: int,
    db: DbSession,
    current_user: ActiveUser,
) -> FollowStatus:
    return FollowStatus(
        is_following=social_service.is_following(db, current_user.id, user_id),
    )


@router.get(
    "/{user_id}/followers",
    response_model=FollowerListResponse,
    summary="List a user's followers",
)
@limiter.limit(settings.rate_limit_default)
def list_followers(
    request: Request,
    user_id: int,
    db: DbSession,
) -> FollowerListResponse:
    items = social_service.list_followers(db, user_id)
    return FollowerListResponse(items=items, total=len(items))


@router.get(
    "/{user_id}/follow-counts",
    response_model=FollowCounts,
    summary="Get follower and following counts",
)
@limiter.limit(settings.rate_limit_default)
def get_follow_counts(
    request: Request,
    user_id: int,
    db: DbSession,
) -> FollowCounts:
    social_service.get_user_or_404(db, user_id)
    return social_service.get_follow_counts(db, user_id)
