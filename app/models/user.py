"""
User Model

Represents a marketplace user: a reader, a writer whose books are sold, or
an admin. Writers are the usual targets of follow edges, and every user can
be the actor of activity records.

Credentials live with the (external) authentication service; this model
only holds what the discovery engine shows about a person.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.book import Book
    from app.models.review import Review


class UserRole(str, Enum):
    """
    Roles a marketplace account can have.

    - READER: Buys and reviews books
    - WRITER: Publishes books, can be followed
    - ADMIN: Moderation (endpoints live elsewhere)
    """
    READER = "reader"
    WRITER = "writer"
    ADMIN = "admin"


class User(Base):
    """
    User model representing registered marketplace users.

    Table: users

    Relationships:
    - reviews: One-to-Many relationship with Review model
    - books: One-to-Many relationship with Book model (as writer)

    Example:
        writer = User(
            username="orwell",
            full_name="George Orwell",
            role=UserRole.WRITER.value,
        )
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # -------------------------------------------------------------------------
    # Identity
    # -------------------------------------------------------------------------
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="Unique username for profile URLs"
    )

    email: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        comment="Contact email address"
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.READER.value,
        nullable=False,
        comment="Account role (reader, writer, admin)"
    )

    # -------------------------------------------------------------------------
    # Profile Fields
    # -------------------------------------------------------------------------
    full_name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        comment="User's full display name"
    )

    avatar_url: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="URL to user's avatar image"
    )

    bio: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Short biography"
    )

    profile: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Long-form writer profile"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the account is active"
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------
    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    books: Mapped[list["Book"]] = relationship(
        "Book",
        back_populates="writer",
    )

    @property
    def display_name(self) -> str:
        """Name shown next to feed items: full name, else username."""
        return self.full_name or self.username

    def __repr__(self) -> str:
        return f"User(id={self.id}, username='{self.username}', role='{self.role}')"
