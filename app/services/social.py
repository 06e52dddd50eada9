"""
Social Graph Service

Maintains the follow graph and the writer cards built from it.

Operations:
- follow / unfollow: idempotent edge changes, each committed together with
  its follow_created / follow_removed activity in one transaction
- is_following, get_follow_counts: point lookups
- list_followers / list_following: follower and followee listings
- get_writer_summaries: batched writer cards with follower counts, used by
  the trending engine and the following list

Business Rules:
- A user can't follow themselves (ConflictError, nothing is written)
- Following twice is a success that reports created=False
- Unfollowing without an edge is a success that reports removed=False
"""

import logging
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.exceptions import ConflictError, NotFoundError, TransientStorageError
from app.models import ActivityType, Follow, User
from app.schemas.social import FollowCounts, FollowResult
from app.schemas.user import UserPublicResponse, WriterSummary
from app.services.activity import record_in_session

logger = logging.getLogger(__name__)


# =============================================================================
# Helper Functions
# =============================================================================


def get_user_or_404(db: Session, user_id: int) -> User:
    """Get a user by ID or raise NotFoundError."""
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User with id {user_id} not found")
    return user


def _find_edge(db: Session, follower_id: int, following_id: int) -> Follow | None:
    stmt = select(Follow).where(
        Follow.follower_id == follower_id,
        Follow.following_id == following_id,
    )
    return db.execute(stmt).scalar_one_or_none()


def count_followers(db: Session, user_id: int) -> int:
    stmt = select(func.count(Follow.id)).where(Follow.following_id == user_id)
    return db.execute(stmt).scalar() or 0


def count_following(db: Session, user_id: int) -> int:
    stmt = select(func.count(Follow.id)).where(Follow.follower_id == user_id)
    return db.execute(stmt).scalar() or 0


def get_following_ids(db: Session, user_id: int) -> list[int]:
    """IDs of every user that user_id follows."""
    stmt = select(Follow.following_id).where(Follow.follower_id == user_id)
    return list(db.execute(stmt).scalars().all())


# =============================================================================
# Edge Mutations
# =============================================================================


def follow(db: Session, follower_id: int, following_id: int) -> FollowResult:
    """
    Make follower_id follow following_id.

    The edge insert and the follow_created activity share one transaction:
    either both are durable or neither is.

    Args:
        db: Database session
        follower_id: The acting user
        following_id: The user to follow

    Returns:
        FollowResult with the post-operation follower count

    Raises:
        ConflictError: follower_id == following_id
        NotFoundError: following_id doesn't exist
        TransientStorageError: the transaction failed and was rolled back
    """
    if follower_id == following_id:
        raise ConflictError("You cannot follow yourself")

    get_user_or_404(db, following_id)

    created = False
    try:
        if _find_edge(db, follower_id, following_id) is None:
            db.add(Follow(follower_id=follower_id, following_id=following_id))
            db.flush()
            record_in_session(
                db,
                ActivityType.FOLLOW_CREATED,
                user_id=follower_id,
                target_id=following_id,
            )
            db.commit()
            created = True
    except IntegrityError as e:
        db.rollback()
        # Only a concurrent insert of the same edge counts as success
        if _find_edge(db, follower_id, following_id) is None:
            logger.error(f"Follow {follower_id} -> {following_id} failed: {e}")
            raise TransientStorageError("Failed to follow user") from e
        logger.info(f"User {follower_id} already follows {following_id}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Follow {follower_id} -> {following_id} failed: {e}")
        raise TransientStorageError("Failed to follow user") from e
    except Exception:
        db.rollback()
        raise

    if created:
        logger.info(f"User {follower_id} followed {following_id}")

    return FollowResult(
        following=True,
        created=created,
        followers_count=count_followers(db, following_id),
    )


def unfollow(db: Session, follower_id: int, following_id: int) -> FollowResult:
    """
    Remove the follow edge from follower_id to following_id.

    The edge delete and the follow_removed activity share one transaction.

    Returns:
        FollowResult with the post-operation follower count

    Raises:
        TransientStorageError: the transaction failed and was rolled back
    """
    removed = False
    try:
        edge = _find_edge(db, follower_id, following_id)
        if edge is not None:
            db.delete(edge)
            db.flush()
            record_in_session(
                db,
                ActivityType.FOLLOW_REMOVED,
                user_id=follower_id,
                target_id=following_id,
            )
            db.commit()
            removed = True
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Unfollow {follower_id} -> {following_id} failed: {e}")
        raise TransientStorageError("Failed to unfollow user") from e
    except Exception:
        db.rollback()
        raise

    if removed:
        logger.info(f"User {follower_id} unfollowed {following_id}")

    return FollowResult(
        following=False,
        removed=removed,
        followers_count=count_followers(db, following_id),
    )


# =============================================================================
# Queries
# =============================================================================


def is_following(db: Session, follower_id: int, following_id: int) -> bool:
    return _find_edge(db, follower_id, following_id) is not None


def get_follow_counts(db: Session, user_id: int) -> FollowCounts:
    return FollowCounts(
        followers_count=count_followers(db, user_id),
        following_count=count_following(db, user_id),
    )


def list_followers(db: Session, user_id: int) -> list[UserPublicResponse]:
    """Users following user_id, most recent first."""
    get_user_or_404(db, user_id)
    stmt = (
        select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    return [UserPublicResponse.model_validate(u) for u in db.execute(stmt).scalars().all()]


def list_following(db: Session, user_id: int) -> list[WriterSummary]:
    """Users that user_id follows, most recent first, as writer cards."""
    stmt = (
        select(Follow.following_id)
        .where(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
    )
    followee_ids = list(db.execute(stmt).scalars().all())
    summaries = get_writer_summaries(db, followee_ids)
    return [summaries[i] for i in followee_ids if i in summaries]


def get_writer_summaries(db: Session, writer_ids: Iterable[int]) -> dict[int, WriterSummary]:
    """
    Build writer cards for many writers with two queries.

    One query loads the users, one grouped count loads their follower
    counts, whatever the number of writers.

    Args:
        db: Database session
        writer_ids: Writer IDs (duplicates are fine)

    Returns:
        Mapping of writer ID to WriterSummary (missing users are skipped)
    """
    ids = list(dict.fromkeys(writer_ids))
    if not ids:
        return {}

    writers = db.execute(select(User).where(User.id.in_(ids))).scalars().all()

    count_stmt = (
        select(Follow.following_id, func.count(Follow.id))
        .where(Follow.following_id.in_(ids))
        .group_by(Follow.following_id)
    )
    follower_counts = {user_id: count for user_id, count in db.execute(count_stmt).all()}

    return {
        writer.id: WriterSummary(
            id=writer.id,
            username=writer.username,
            profile=writer.profile,
            bio=writer.bio,
            avatar=writer.avatar_url,
            followers_count=follower_counts.get(writer.id, 0),
        )
        for writer in writers
    }
