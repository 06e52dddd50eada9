"""
Follow Model

A directed edge from a follower to the user being followed. Personal feeds
are built from the activities of everyone a user follows.

Business Rules:
- One edge per (follower, following) pair
- A user can never follow themselves
- Edges are created and removed, never updated in place
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Follow(Base):
    """
    Follow edge.

    Attributes:
        id: Primary key
        follower_id: User who follows
        following_id: User being followed
        created_at: When the edge was created
    """

    __tablename__ = "follows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    follower_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    following_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    follower = relationship("User", foreign_keys=[follower_id])
    following = relationship("User", foreign_keys=[following_id])

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
        CheckConstraint("follower_id <> following_id", name="ck_follow_not_self"),
        # Followee lookups for feeds, follower counts for writer summaries
        Index("ix_follows_follower_created", "follower_id", "created_at"),
        Index("ix_follows_following_created", "following_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Follow(follower_id={self.follower_id}, following_id={self.following_id})>"
