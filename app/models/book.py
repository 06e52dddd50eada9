"""
Book Model

The central catalog entity. Besides the listing data, each book carries
denormalized counters:

- average_rating / review_count: maintained by the rating aggregator
  (app.services.ratings) after every review mutation
- views / sales: maintained by the order and view-tracking services

The book_genres association table links books to genres.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.genre import Genre
    from app.models.review import Review
    from app.models.user import User


class BookStatus(str, Enum):
    """Publication lifecycle of a book."""
    DRAFT = "draft"
    PUBLISHED = "published"


# =============================================================================
# Association Tables
# =============================================================================
book_genres = Table(
    "book_genres",
    Base.metadata,
    Column(
        "book_id",
        Integer,
        ForeignKey("books.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "genre_id",
        Integer,
        ForeignKey("genres.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    comment="Association table linking books to their genres",
)


class Book(Base):
    """
    Book model representing books listed in the marketplace.

    Table: books

    Relationships:
    - writer: Many-to-One (the user who owns and publishes the book)
    - genres: Many-to-Many (a book can belong to multiple genres)
    - reviews: One-to-Many

    Indexes:
    - writer_id: For writer summaries and profile pages
    - status + published_at: For trending eligibility scans
    - category: For category browsing

    Example:
        book = Book(
            title="1984",
            writer_id=writer.id,
            category="Fiction",
            price=Decimal("12.99"),
            status=BookStatus.PUBLISHED.value,
            published_at=datetime.now(UTC),
        )
    """

    __tablename__ = "books"

    id: Mapped[int] = mapped_column(primary_key=True)

    writer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
        comment="Owning writer"
    )

    # -------------------------------------------------------------------------
    # Listing Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(500),
        index=True,
        nullable=False,
        comment="Book title"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="Book description or summary"
    )

    category: Mapped[str | None] = mapped_column(
        String(100),
        index=True,
        nullable=True,
        comment="Marketplace category"
    )

    # Numeric(10, 2): Decimal (not float) for precise money calculations
    price: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Book price in USD"
    )

    cover_image: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="URL of the cover image"
    )

    language: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Language the book is written in"
    )

    pages: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Number of pages in the book"
    )

    # -------------------------------------------------------------------------
    # Publication
    # -------------------------------------------------------------------------
    status: Mapped[str] = mapped_column(
        String(20),
        default=BookStatus.DRAFT.value,
        index=True,
        nullable=False,
        comment="draft or published"
    )

    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        index=True,
        nullable=True,
        comment="When the book was published"
    )

    # -------------------------------------------------------------------------
    # Denormalized Aggregates
    # -------------------------------------------------------------------------
    # Numeric(3, 2): 0.00 - 5.00
    average_rating: Mapped[Decimal] = mapped_column(
        Numeric(3, 2),
        default=Decimal("0"),
        nullable=False,
        comment="Mean review rating rounded to 2 decimals (0 when unreviewed)"
    )

    review_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Number of reviews"
    )

    views: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Page view counter"
    )

    sales: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Completed sales counter"
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
    writer: Mapped["User"] = relationship(
        "User",
        back_populates="books",
    )

    genres: Mapped[list["Genre"]] = relationship(
        "Genre",
        secondary=book_genres,
        back_populates="books",
    )

    reviews: Mapped[list["Review"]] = relationship(
        "Review",
        back_populates="book",
        cascade="all, delete-orphan",
    )

    @property
    def is_published(self) -> bool:
        return self.status == BookStatus.PUBLISHED.value

    def __repr__(self) -> str:
        return f"Book(id={self.id}, title='{self.title}', status='{self.status}')"
