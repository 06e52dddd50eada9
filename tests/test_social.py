"""
Tests for the Social Graph

Tests:
- follow / unfollow idempotence and follower counts
- Self-follow rejection with nothing written
- Edge and activity committed together (or not at all)
- Follower / following listings and writer cards
- HTTP endpoints under /api/v1/users
"""

from unittest.mock import patch

import pytest
from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.exceptions import ConflictError, NotFoundError, TransientStorageError
from app.models import Activity, ActivityType, Follow, User
from app.services import social
from tests.conftest import get_auth_header


def count_rows(db: Session, model) -> int:
    return db.execute(select(func.count(model.id))).scalar()


def storage_down(*args, **kwargs):
    raise OperationalError("INSERT INTO activities", {}, Exception("disk I/O error"))


# =============================================================================
# Follow / Unfollow (service)
# =============================================================================


class TestFollow:
    """Tests for social.follow"""

    def test_follow_creates_edge_and_activity(
        self, db_session: Session, reader: User, writer: User
    ):
        result = social.follow(db_session, reader.id, writer.id)

        assert result.following is True
        assert result.created is True
        assert result.followers_count == 1
        assert social.is_following(db_session, reader.id, writer.id)

        activity = db_session.execute(select(Activity)).scalar_one()
        assert activity.activity_type == ActivityType.FOLLOW_CREATED
        assert activity.user_id == reader.id
        assert activity.target_id == writer.id

    def test_follow_twice_is_idempotent(
        self, db_session: Session, reader: User, writer: User
    ):
        social.follow(db_session, reader.id, writer.id)
        again = social.follow(db_session, reader.id, writer.id)

        assert again.following is True
        assert again.created is False
        assert again.followers_count == 1
        assert count_rows(db_session, Follow) == 1
        assert count_rows(db_session, Activity) == 1

    def test_self_follow_rejected(self, db_session: Session, writer: User):
        with pytest.raises(ConflictError):
            social.follow(db_session, writer.id, writer.id)

        assert count_rows(db_session, Follow) == 0
        assert count_rows(db_session, Activity) == 0

    def test_follow_unknown_user(self, db_session: Session, reader: User):
        with pytest.raises(NotFoundError):
            social.follow(db_session, reader.id, 99999)

    def test_activity_failure_rolls_back_edge(
        self, db_session: Session, reader: User, writer: User
    ):
        with patch("app.services.social.record_in_session", side_effect=storage_down):
            with pytest.raises(TransientStorageError):
                social.follow(db_session, reader.id, writer.id)

        assert count_rows(db_session, Follow) == 0
        assert count_rows(db_session, Activity) == 0
        assert not social.is_following(db_session, reader.id, writer.id)

    def test_integrity_error_without_edge_propagates(
        self, db_session: Session, reader: User, writer: User
    ):
        integrity = IntegrityError("INSERT INTO activities", {}, Exception("NOT NULL constraint failed"))

        with patch("app.services.social.record_in_session", side_effect=integrity):
            with pytest.raises(TransientStorageError):
                social.follow(db_session, reader.id, writer.id)

        assert count_rows(db_session, Follow) == 0
        assert count_rows(db_session, Activity) == 0

    def test_concurrent_duplicate_edge_reports_existing(
        self, db_session: Session, reader: User, writer: User
    ):
        real_commit = db_session.commit

        def lose_race():
            # The other request's edge lands first
            db_session.rollback()
            db_session.add(Follow(follower_id=reader.id, following_id=writer.id))
            real_commit()
            raise IntegrityError("INSERT INTO follows", {}, Exception("UNIQUE constraint failed"))

        with patch.object(db_session, "commit", side_effect=lose_race):
            result = social.follow(db_session, reader.id, writer.id)

        assert result.following is True
        assert result.created is False
        assert result.followers_count == 1
        assert count_rows(db_session, Follow) == 1

    def test_unexpected_error_rolls_back_and_propagates(
        self, db_session: Session, reader: User, writer: User
    ):
        with patch("app.services.social.record_in_session", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                social.follow(db_session, reader.id, writer.id)

        assert count_rows(db_session, Follow) == 0


class TestUnfollow:
    """Tests for social.unfollow"""

    def test_unfollow_removes_edge_and_records_activity(
        self, db_session: Session, reader: User, writer: User
    ):
        social.follow(db_session, reader.id, writer.id)

        result = social.unfollow(db_session, reader.id, writer.id)

        assert result.following is False
        assert result.removed is True
        assert result.followers_count == 0
        types = db_session.execute(select(Activity.activity_type)).scalars().all()
        assert sorted(types) == [ActivityType.FOLLOW_CREATED, ActivityType.FOLLOW_REMOVED]

    def test_unfollow_without_edge_is_noop(
        self, db_session: Session, reader: User, writer: User
    ):
        result = social.unfollow(db_session, reader.id, writer.id)

        assert result.following is False
        assert result.removed is False
        assert result.followers_count == 0
        assert count_rows(db_session, Activity) == 0

    def test_activity_failure_keeps_edge(
        self, db_session: Session, reader: User, writer: User
    ):
        social.follow(db_session, reader.id, writer.id)

        with patch("app.services.social.record_in_session", side_effect=storage_down):
            with pytest.raises(TransientStorageError):
                social.unfollow(db_session, reader.id, writer.id)

        assert social.is_following(db_session, reader.id, writer.id)
        assert count_rows(db_session, Activity) == 1


# =============================================================================
# Queries (service)
# =============================================================================


class TestSocialQueries:
    """Tests for counts, listings and writer summaries"""

    def test_follow_counts(
        self,
        db_session: Session,
        reader: User,
        second_reader: User,
        writer: User,
        second_writer: User,
    ):
        social.follow(db_session, reader.id, writer.id)
        social.follow(db_session, second_reader.id, writer.id)
        social.follow(db_session, writer.id, second_writer.id)

        counts = social.get_follow_counts(db_session, writer.id)

        assert counts.followers_count == 2
        assert counts.following_count == 1

    def test_list_followers(
        self, db_session: Session, reader: User, second_reader: User, writer: User
    ):
        social.follow(db_session, reader.id, writer.id)
        social.follow(db_session, second_reader.id, writer.id)

        followers = social.list_followers(db_session, writer.id)

        assert {f.username for f in followers} == {"reader", "reader2"}

    def test_list_following_returns_writer_cards(
        self,
        db_session: Session,
        reader: User,
        second_reader: User,
        writer: User,
        second_writer: User,
    ):
        social.follow(db_session, reader.id, writer.id)
        social.follow(db_session, reader.id, second_writer.id)
        social.follow(db_session, second_reader.id, writer.id)

        following = social.list_following(db_session, reader.id)

        by_id = {card.id: card for card in following}
        assert set(by_id) == {writer.id, second_writer.id}
        assert by_id[writer.id].followers_count == 2
        assert by_id[writer.id].bio == "English novelist and essayist."
        assert by_id[second_writer.id].followers_count == 1

    def test_writer_summaries_batch(
        self, db_session: Session, reader: User, writer: User, second_writer: User
    ):
        social.follow(db_session, reader.id, writer.id)

        summaries = social.get_writer_summaries(
            db_session, [writer.id, second_writer.id, writer.id, 99999]
        )

        assert set(summaries) == {writer.id, second_writer.id}
        assert summaries[writer.id].followers_count == 1
        assert summaries[second_writer.id].followers_count == 0

    def test_writer_summaries_empty(self, db_session: Session):
        assert social.get_writer_summaries(db_session, []) == {}


# =============================================================================
# HTTP endpoints
# =============================================================================


class TestFollowEndpoints:
    """Tests for /api/v1/users/{user_id}/follow"""

    def test_follow(self, client: TestClient, reader: User, writer: User):
        response = client.post(
            f"/api/v1/users/{writer.id}/follow",
            headers=get_auth_header(reader),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "following": True,
            "followers_count": 1,
            "created": True,
            "removed": False,
        }

    def test_follow_self_conflict(self, client: TestClient, writer: User):
        response = client.post(
            f"/api/v1/users/{writer.id}/follow",
            headers=get_auth_header(writer),
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["detail"] == "You cannot follow yourself"

    def test_follow_unknown_user(self, client: TestClient, reader: User):
        response = client.post(
            "/api/v1/users/99999/follow",
            headers=get_auth_header(reader),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_follow_requires_auth(self, client: TestClient, writer: User):
        response = client.post(f"/api/v1/users/{writer.id}/follow")

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_follow_storage_failure_is_503(
        self, client: TestClient, reader: User, writer: User
    ):
        with patch("app.services.social.record_in_session", side_effect=storage_down):
            response = client.post(
                f"/api/v1/users/{writer.id}/follow",
                headers=get_auth_header(reader),
            )

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    def test_unfollow(self, client: TestClient, reader: User, writer: User):
        headers = get_auth_header(reader)
        client.post(f"/api/v1/users/{writer.id}/follow", headers=headers)

        response = client.delete(f"/api/v1/users/{writer.id}/follow", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["following"] is False
        assert data["removed"] is True
        assert data["followers_count"] == 0

    def test_follow_status(self, client: TestClient, reader: User, writer: User):
        headers = get_auth_header(reader)
        url = f"/api/v1/users/{writer.id}/follow"

        assert client.get(url, headers=headers).json() == {"is_following": False}
        client.post(url, headers=headers)
        assert client.get(url, headers=headers).json() == {"is_following": True}


class TestFollowListEndpoints:
    """Tests for follower/following listings"""

    def test_followers(
        self,
        client: TestClient,
        db_session: Session,
        reader: User,
        writer: User,
    ):
        social.follow(db_session, reader.id, writer.id)

        response = client.get(f"/api/v1/users/{writer.id}/followers")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["username"] == "reader"

    def test_followers_unknown_user(self, client: TestClient):
        response = client.get("/api/v1/users/99999/followers")

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_my_following(
        self,
        client: TestClient,
        db_session: Session,
        reader: User,
        writer: User,
    ):
        social.follow(db_session, reader.id, writer.id)

        response = client.get("/api/v1/users/me/following", headers=get_auth_header(reader))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["username"] == "orwell"
        assert data["items"][0]["followers_count"] == 1

    def test_follow_counts(
        self,
        client: TestClient,
        db_session: Session,
        reader: User,
        writer: User,
    ):
        social.follow(db_session, reader.id, writer.id)

        response = client.get(f"/api/v1/users/{writer.id}/follow-counts")

        assert response.json() == {"followers_count": 1, "following_count": 0}
