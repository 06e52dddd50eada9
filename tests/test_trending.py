"""
Tests for Trending and Categories

Tests:
- Eligibility: published, inside the window, rating >= 4.0, >= 5 reviews
- Ranking by score, then average rating, then review count
- Cached payloads stay identical until the TTL runs out
- Categories and genre counts over published books
- HTTP endpoints under /api/v1/marketplace
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.exceptions import ValidationError
from app.models import Book, BookStatus, Genre, User
from app.services import social
from app.services.cache import TTLCache
from app.services.trending import TrendingService, age_in_days, trending_score
from tests.conftest import NOW, FakeTimer, make_book


def trending_book(db: Session, writer: User, title: str, rating: str, reviews: int, days_ago: float, **kwargs) -> Book:
    return make_book(
        db,
        writer,
        title,
        published_at=NOW - timedelta(days=days_ago),
        average_rating=Decimal(rating),
        review_count=reviews,
        **kwargs,
    )


@pytest.fixture
def ranked_books(db_session: Session, writer: User, second_writer: User) -> dict[str, Book]:
    return {
        "steady": trending_book(db_session, writer, "Steady", "4.5", 10, 1),       # 66
        "minimum": trending_book(db_session, second_writer, "Minimum", "4.0", 5, 2),  # 52
        "hit": trending_book(db_session, writer, "Hit", "5.0", 20, 3),             # 93
    }


@pytest.fixture
def excluded_books(db_session: Session, writer: User) -> dict[str, Book]:
    return {
        "low_rating": trending_book(db_session, writer, "Low Rating", "3.9", 50, 1),
        "few_reviews": trending_book(db_session, writer, "Few Reviews", "4.8", 4, 1),
        "old": trending_book(db_session, writer, "Old", "4.9", 30, 10),
        "draft": make_book(
            db_session,
            writer,
            "Draft",
            status=BookStatus.DRAFT,
            average_rating=Decimal("5.0"),
            review_count=99,
        ),
    }


def titles(payload: dict) -> list[str]:
    return [item["title"] for item in payload["items"]]


class TestTrendingScore:
    """Tests for the scoring helpers"""

    def test_score_formula(self):
        published = NOW - timedelta(days=2)

        assert trending_score(Decimal("4.5"), 10, published, NOW) == pytest.approx(67.0)

    def test_age_of_naive_datetime_treated_as_utc(self):
        naive = (NOW - timedelta(hours=12)).replace(tzinfo=None)

        assert age_in_days(naive, NOW) == pytest.approx(0.5)


class TestGetTrending:
    """Tests for TrendingService.get_trending"""

    def test_ranking_and_exclusions(
        self,
        db_session: Session,
        trending_service: TrendingService,
        ranked_books: dict,
        excluded_books: dict,
    ):
        payload = trending_service.get_trending(db_session)

        assert titles(payload) == ["Hit", "Steady", "Minimum"]
        assert payload["items"][0]["trending_score"] == pytest.approx(93.0)
        assert payload["items"][2]["average_rating"] == 4.0
        assert payload["items"][2]["review_count"] == 5

    def test_wider_window_includes_older_books(
        self,
        db_session: Session,
        trending_service: TrendingService,
        ranked_books: dict,
        excluded_books: dict,
    ):
        payload = trending_service.get_trending(db_session, days=30)

        # 4.9 * 10 + 30 * 2 + 10 days = 119
        assert titles(payload) == ["Old", "Hit", "Steady", "Minimum"]

    def test_limit(
        self, db_session: Session, trending_service: TrendingService, ranked_books: dict
    ):
        payload = trending_service.get_trending(db_session, limit=2)

        assert titles(payload) == ["Hit", "Steady"]

    def test_equal_scores_rank_by_rating(
        self, db_session: Session, trending_service: TrendingService, writer: User
    ):
        # 4.0 * 10 + 10 * 2 + 1 = 61 and 4.5 * 10 + 7 * 2 + 2 = 61
        trending_book(db_session, writer, "Popular", "4.0", 10, 1)
        trending_book(db_session, writer, "Acclaimed", "4.5", 7, 2)

        payload = trending_service.get_trending(db_session)

        assert titles(payload) == ["Acclaimed", "Popular"]

    def test_items_carry_writer_card_and_genres(
        self,
        db_session: Session,
        trending_service: TrendingService,
        writer: User,
        reader: User,
        sample_genre: Genre,
    ):
        trending_book(
            db_session, writer, "Tagged", "4.2", 6, 1,
            category="Fiction", price=Decimal("9.99"), genres=[sample_genre],
        )
        social.follow(db_session, reader.id, writer.id)

        item = trending_service.get_trending(db_session)["items"][0]

        assert item["genres"] == ["Science Fiction"]
        assert item["price"] == 9.99
        assert item["writer"]["username"] == "orwell"
        assert item["writer"]["followers_count"] == 1
        assert item["published_at"].startswith("2026-04-30T12:00:00")

    def test_no_eligible_books(self, db_session: Session, trending_service: TrendingService):
        assert trending_service.get_trending(db_session) == {"items": []}

    @pytest.mark.parametrize("days,limit", [(0, 10), (366, 10), (7, 0), (7, 51)])
    def test_out_of_range_arguments(
        self, db_session: Session, trending_service: TrendingService, days, limit
    ):
        with pytest.raises(ValidationError):
            trending_service.get_trending(db_session, days=days, limit=limit)


class TestTrendingCache:
    """Tests for the trending cache window"""

    def test_payload_is_stale_until_ttl_expires(
        self,
        db_session: Session,
        trending_service: TrendingService,
        cache_timer: FakeTimer,
        ranked_books: dict,
        writer: User,
    ):
        first = trending_service.get_trending(db_session)

        trending_book(db_session, writer, "Newcomer", "5.0", 50, 0.5)
        cache_timer.advance(599)
        second = trending_service.get_trending(db_session)

        assert second is first
        assert "Newcomer" not in titles(second)

        cache_timer.advance(1)
        third = trending_service.get_trending(db_session)

        assert titles(third)[0] == "Newcomer"

    def test_windows_are_cached_separately(
        self,
        db_session: Session,
        cache: TTLCache,
        trending_service: TrendingService,
        ranked_books: dict,
    ):
        trending_service.get_trending(db_session, days=7, limit=10)
        trending_service.get_trending(db_session, days=30, limit=10)

        assert "trending:7:10" in cache
        assert "trending:30:10" in cache

    def test_zero_ttl_disables_caching(
        self, db_session: Session, cache: TTLCache, ranked_books: dict
    ):
        service = TrendingService(cache, clock=lambda: NOW, trending_ttl=0, categories_ttl=0)

        first = service.get_trending(db_session)
        second = service.get_trending(db_session)

        assert service.trending_ttl == 0
        assert service.categories_ttl == 0
        assert second is not first
        assert "trending:7:10" not in cache

    def test_storage_error_is_not_cached(
        self, db_session: Session, cache: TTLCache, trending_service: TrendingService
    ):
        with patch.object(
            trending_service,
            "_compute_trending",
            side_effect=OperationalError("SELECT", {}, Exception("gone")),
        ):
            payload = trending_service.get_trending(db_session)

        assert payload == {"items": []}
        assert len(cache) == 0


class TestGetCategories:
    """Tests for TrendingService.get_categories"""

    def test_categories_and_genre_counts(
        self,
        db_session: Session,
        trending_service: TrendingService,
        writer: User,
    ):
        fantasy = Genre(name="Fantasy")
        memoir = Genre(name="Memoir")
        db_session.add_all([fantasy, memoir])
        db_session.commit()

        make_book(db_session, writer, "A", category="Fiction", genres=[fantasy])
        make_book(db_session, writer, "B", category="Essays", genres=[fantasy, memoir])
        make_book(db_session, writer, "C", category="Fiction")
        make_book(db_session, writer, "D", category=None, genres=[memoir])
        make_book(
            db_session, writer, "Hidden", status=BookStatus.DRAFT,
            category="Secret", genres=[fantasy],
        )

        payload = trending_service.get_categories(db_session)

        assert payload["categories"] == ["Essays", "Fiction"]
        assert payload["genres"] == [
            {"name": "Fantasy", "count": 2},
            {"name": "Memoir", "count": 2},
        ]

    def test_categories_cached(
        self,
        db_session: Session,
        trending_service: TrendingService,
        cache_timer: FakeTimer,
        writer: User,
    ):
        make_book(db_session, writer, "A", category="Fiction")
        first = trending_service.get_categories(db_session)

        make_book(db_session, writer, "B", category="Poetry")
        assert trending_service.get_categories(db_session) is first

        cache_timer.advance(900)
        assert trending_service.get_categories(db_session)["categories"] == ["Fiction", "Poetry"]


class TestMarketplaceEndpoints:
    """Tests for /api/v1/marketplace"""

    def test_trending(self, client: TestClient, ranked_books: dict):
        response = client.get("/api/v1/marketplace/trending")

        assert response.status_code == status.HTTP_200_OK
        assert titles(response.json()) == ["Hit", "Steady", "Minimum"]

    def test_trending_with_params(self, client: TestClient, ranked_books: dict):
        response = client.get("/api/v1/marketplace/trending?days=7&limit=1")

        assert titles(response.json()) == ["Hit"]

    def test_trending_invalid_days(self, client: TestClient):
        response = client.get("/api/v1/marketplace/trending?days=0")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_categories(self, client: TestClient, published_book: Book):
        response = client.get("/api/v1/marketplace/categories")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "categories": ["Fiction"],
            "genres": [{"name": "Science Fiction", "count": 1}],
        }

    def test_health_reports_cache(self, client: TestClient, ranked_books: dict):
        client.get("/api/v1/marketplace/trending")
        client.get("/api/v1/marketplace/trending")

        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["cache"]["hits"] == 1
        assert data["cache"]["keys"] == 1
        assert data["activity_recorder"]["running"] is False
