"""
Feed Service

Reads activity records back out as feeds.

- Personal feed: activities whose actor is someone the user follows
- Global feed: every activity

Both are newest first, skip/limit paginated, and each item carries minimal
actor info (id, username, display name, avatar).

Feeds are a read path with a safe fallback: a storage error is logged and
answered with an empty page (total = 0) so a broken feed never breaks the
page around it. Invalid pagination input is still rejected up front.
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.config import get_settings
from app.models import Activity
from app.schemas.feed import FeedItem, FeedPage
from app.schemas.user import FeedActor
from app.services.pagination import offset_for, validate_pagination
from app.services.social import get_following_ids

logger = logging.getLogger(__name__)
settings = get_settings()


def serialize_activity(activity: Activity) -> FeedItem:
    actor = None
    if activity.user is not None:
        actor = FeedActor(
            id=activity.user.id,
            username=activity.user.username,
            display_name=activity.user.display_name,
            avatar=activity.user.avatar_url,
        )

    return FeedItem(
        id=activity.id,
        activity_type=activity.activity_type,
        target_id=activity.target_id,
        created_at=activity.created_at,
        user=actor,
        metadata=activity.details or {},
    )


def _query_feed(db: Session, page: int, limit: int, *criteria) -> FeedPage:
    count_stmt = select(func.count(Activity.id))
    stmt = select(Activity).options(selectinload(Activity.user))
    if criteria:
        count_stmt = count_stmt.where(*criteria)
        stmt = stmt.where(*criteria)

    total = db.execute(count_stmt).scalar() or 0
    if total == 0:
        return FeedPage.empty(page, limit)

    stmt = (
        stmt.order_by(Activity.created_at.desc(), Activity.id.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
    )
    activities = db.execute(stmt).scalars().all()

    return FeedPage.build(
        [serialize_activity(a) for a in activities],
        total=total,
        page=page,
        limit=limit,
    )


def get_personal_feed(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int | None = None,
) -> FeedPage:
    """
    Activities of everyone user_id follows.

    A user following nobody gets an empty page without the activity table
    being queried at all.

    Args:
        db: Database session
        user_id: Whose feed to build
        page: 1-indexed page number
        limit: Page size (defaults to feed_default_limit)

    Returns:
        FeedPage (empty on storage errors)

    Raises:
        ValidationError: invalid page or limit
    """
    if limit is None:
        limit = settings.feed_default_limit
    validate_pagination(page, limit)

    try:
        following_ids = get_following_ids(db, user_id)
        if not following_ids:
            return FeedPage.empty(page, limit)
        return _query_feed(db, page, limit, Activity.user_id.in_(following_ids))
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Personal feed for user {user_id} unavailable: {e}")
        return FeedPage.empty(page, limit)


def get_global_feed(db: Session, page: int = 1, limit: int | None = None) -> FeedPage:
    """
    Every activity, newest first.

    Raises:
        ValidationError: invalid page or limit
    """
    if limit is None:
        limit = settings.feed_default_limit
    validate_pagination(page, limit)

    try:
        return _query_feed(db, page, limit)
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"Global feed unavailable: {e}")
        return FeedPage.empty(page, limit)
