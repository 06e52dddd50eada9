"""
Activity Model

Append-only feed events: "X published a book", "Y reviewed Z", "A followed
B". Activities are written by the activity recorder and read by the feed
fan-out service; nothing in the engine updates or deletes them.
"""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class ActivityType(StrEnum):
    """Closed set of events that can appear in a feed."""

    BOOK_PUBLISHED = "book_published"
    STORY_PUBLISHED = "story_published"
    REVIEW_CREATED = "review_created"
    FOLLOW_CREATED = "follow_created"
    FOLLOW_REMOVED = "follow_removed"
    DRAFT_CREATED = "draft_created"


class Activity(Base):
    """
    Activity record.

    Attributes:
        id: Primary key
        user_id: The actor
        activity_type: One of ActivityType
        target_id: ID of the book, story, review or user acted upon
        details: Free-form metadata (stored in the "metadata" column)
        created_at: When the event happened
    """

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    activity_type: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )
    target_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # "metadata" is reserved on declarative classes, so the attribute is
    # named details and mapped onto the metadata column.
    details: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        default=dict,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    user = relationship("User")

    __table_args__ = (
        Index("ix_activities_user_created", "user_id", "created_at"),
        Index("ix_activities_type_created", "activity_type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, user_id={self.user_id}, type='{self.activity_type}')>"
