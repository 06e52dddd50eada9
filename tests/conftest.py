"""
pytest Fixtures for Book Discovery API Tests

Shared fixtures used across all test files.

Database:
- A fresh SQLite in-memory engine per test (StaticPool keeps the single
  connection alive), so tests that commit or roll back never see each
  other's rows.

Application services:
- The client fixture gives the app a fresh cache, trending service and an
  inline (not started) activity recorder bound to the test engine.

IMPORTANT: Some PostgreSQL features won't work in SQLite.
For integration tests, use a real PostgreSQL test database.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
import os

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-at-least-32-characters-long"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ACTIVITY_ASYNC_DISPATCH"] = "false"

from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import Book, BookStatus, Genre, Review, User, UserRole
from app.services.activity import ActivityRecorder
from app.services.cache import TTLCache
from app.services.security import create_access_token
from app.services.trending import TrendingService

# Fixed "now" for anything time dependent
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


class FakeTimer:
    """Monotonic seconds that only move when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def get_auth_header(user: User) -> dict:
    """Create authorization header for a user."""
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture
def engine():
    """
    Create a SQLite in-memory database engine.

    StaticPool keeps the connection alive for the whole test.
    Without it, the in-memory database would disappear between connections.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Create a database session for the test."""
    session = session_factory()

    yield session

    session.close()


@pytest.fixture
def recorder(session_factory: sessionmaker) -> ActivityRecorder:
    """Activity recorder writing inline to the test database."""
    return ActivityRecorder(session_factory, queue_size=10)


@pytest.fixture
def cache_timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def cache(cache_timer: FakeTimer) -> TTLCache:
    return TTLCache(max_entries=64, default_ttl=300, timer=cache_timer)


@pytest.fixture
def trending_service(cache: TTLCache) -> TrendingService:
    return TrendingService(cache, clock=lambda: NOW)


@pytest.fixture
def client(
    db_session: Session,
    recorder: ActivityRecorder,
    cache: TTLCache,
    trending_service: TrendingService,
) -> Generator[TestClient, None, None]:
    """
    Create a test client with the test database and test services.

    We override the get_db dependency to use our test session and swap the
    lifespan-managed services on app.state.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        # The lifespan ran on enter; replace what it would use
        app.state.cache = cache
        app.state.activity_recorder = recorder
        app.state.trending_service = trending_service
        yield test_client

    app.dependency_overrides.clear()


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


def make_user(db: Session, username: str, role: UserRole = UserRole.READER, **kwargs) -> User:
    user = User(username=username, role=role.value, **kwargs)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_book(
    db: Session,
    writer: User,
    title: str,
    status: BookStatus = BookStatus.PUBLISHED,
    published_at: datetime | None = None,
    **kwargs,
) -> Book:
    if status == BookStatus.PUBLISHED and published_at is None:
        published_at = NOW - timedelta(days=1)
    book = Book(
        writer_id=writer.id,
        title=title,
        status=status.value,
        published_at=published_at,
        **kwargs,
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


def add_reviews(db: Session, book: Book, ratings: list[int], prefix: str = "reviewer") -> list[User]:
    """Create one reader per rating and store their reviews directly."""
    reviewers = []
    for i, rating in enumerate(ratings):
        reader = make_user(db, f"{prefix}{book.id}_{i}")
        db.add(Review(book_id=book.id, user_id=reader.id, rating=rating))
        reviewers.append(reader)
    db.commit()
    return reviewers


@pytest.fixture
def writer(db_session: Session) -> User:
    return make_user(
        db_session,
        "orwell",
        role=UserRole.WRITER,
        full_name="George Orwell",
        bio="English novelist and essayist.",
        profile="Author of Animal Farm and 1984.",
    )


@pytest.fixture
def second_writer(db_session: Session) -> User:
    return make_user(db_session, "austen", role=UserRole.WRITER, full_name="Jane Austen")


@pytest.fixture
def reader(db_session: Session) -> User:
    return make_user(db_session, "reader", full_name="Avid Reader")


@pytest.fixture
def second_reader(db_session: Session) -> User:
    return make_user(db_session, "reader2")


@pytest.fixture
def inactive_user(db_session: Session) -> User:
    return make_user(db_session, "ghost", is_active=False)


@pytest.fixture
def sample_genre(db_session: Session) -> Genre:
    genre = Genre(name="Science Fiction")
    db_session.add(genre)
    db_session.commit()
    db_session.refresh(genre)
    return genre


@pytest.fixture
def published_book(db_session: Session, writer: User, sample_genre: Genre) -> Book:
    return make_book(
        db_session,
        writer,
        "1984",
        description="A dystopian novel set in a totalitarian society.",
        category="Fiction",
        price=Decimal("12.99"),
        pages=328,
        language="English",
        genres=[sample_genre],
    )


@pytest.fixture
def draft_book(db_session: Session, writer: User) -> Book:
    return make_book(db_session, writer, "Unfinished Manuscript", status=BookStatus.DRAFT)
