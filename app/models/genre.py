"""
Genre Model

Genres tag published books for browsing ("Fantasy", "Memoir", ...). A book
can carry several genres; the categories listing reports how many published
books use each one.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.book import Book


class Genre(Base):
    """
    Genre model.

    Table: genres

    Relationships:
    - books: Many-to-Many relationship through book_genres table
    """

    __tablename__ = "genres"

    id: Mapped[int] = mapped_column(primary_key=True)

    # unique=True prevents duplicate genre names
    name: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
        comment="Genre name (e.g., 'Fantasy', 'Memoir')"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    books: Mapped[List["Book"]] = relationship(
        "Book",
        secondary="book_genres",
        back_populates="genres",
    )

    def __repr__(self) -> str:
        return f"Genre(id={self.id}, name='{self.name}')"
