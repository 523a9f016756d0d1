"""
Tests for like toggles and the liked-video read models.
"""

import uuid
import pytest
from datetime import datetime, timedelta
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from conftest import make_user
from vidtube.models import Like, User

LIKES_URL = "/api/v1/likes"


class TestLikeToggles:

    def test_toggle_video_like_twice(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User, auth_headers2, create_video
    ):
        """Test the second toggle undoes the first."""
        video = create_video(test_user)
        url = f"{LIKES_URL}/toggle/v/{video.id}"

        first = client.post(url, headers=auth_headers2)
        assert first.status_code == 200
        assert first.json()["data"] == {"isLiked": True}
        assert test_db.query(Like).filter_by(video_id=video.id, liked_by_id=test_user2.id).count() == 1

        second = client.post(url, headers=auth_headers2)
        assert second.json()["data"] == {"isLiked": False}
        assert test_db.query(Like).filter_by(video_id=video.id).count() == 0

    def test_toggle_comment_like(
        self, client: TestClient, test_db: Session, test_user: User, auth_headers, create_video, create_comment
    ):
        comment = create_comment(test_user, create_video(test_user))

        response = client.post(f"{LIKES_URL}/toggle/c/{comment.id}", headers=auth_headers)

        assert response.json()["data"] == {"isLiked": True}
        like = test_db.query(Like).one()
        assert like.comment_id == comment.id
        assert like.video_id is None
        assert like.tweet_id is None

    def test_toggle_tweet_like(self, client: TestClient, test_user: User, auth_headers, create_tweet):
        tweet = create_tweet(test_user)

        response = client.post(f"{LIKES_URL}/toggle/t/{tweet.id}", headers=auth_headers)

        assert response.json()["data"] == {"isLiked": True}

    def test_likes_are_per_user(
        self, client: TestClient, test_db: Session, test_user: User, auth_headers, auth_headers2, create_video
    ):
        video = create_video(test_user)
        url = f"{LIKES_URL}/toggle/v/{video.id}"

        client.post(url, headers=auth_headers)
        response = client.post(url, headers=auth_headers2)

        assert response.json()["data"] == {"isLiked": True}
        assert test_db.query(Like).filter_by(video_id=video.id).count() == 2

    @pytest.mark.parametrize("kind", ["v", "c", "t"])
    def test_unknown_target(self, client: TestClient, auth_headers, kind):
        response = client.post(f"{LIKES_URL}/toggle/{kind}/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    def test_malformed_target_id(self, client: TestClient, auth_headers):
        response = client.post(f"{LIKES_URL}/toggle/v/nope", headers=auth_headers)

        assert response.status_code == 400

    def test_concurrent_identical_like_reports_present(
        self, client: TestClient, test_db: Session, test_user: User, auth_headers2, create_video
    ):
        """Test losing the insert to an identical toggle still answers isLiked."""
        video = create_video(test_user)
        duplicate = IntegrityError("INSERT INTO likes", {}, Exception("UNIQUE constraint failed"))

        with patch.object(test_db, "commit", side_effect=duplicate) as commit:
            response = client.post(f"{LIKES_URL}/toggle/v/{video.id}", headers=auth_headers2)

        assert commit.call_count == 1
        assert response.status_code == 200
        assert response.json()["data"] == {"isLiked": True}
        # The failed insert was rolled back; the session is usable
        assert len(test_db.new) == 0
        assert test_db.query(Like).count() == 0


@pytest.mark.readmodel
class TestLikedVideoViews:

    def test_video_likers(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User, auth_headers, create_video
    ):
        """Test the likers of one video, newest like first."""
        video = create_video(test_user, "Liked")
        carol = make_user(test_db, "carol")
        start = datetime(2024, 4, 1)
        test_db.add_all([
            Like(video_id=video.id, liked_by_id=test_user2.id, created_at=start),
            Like(video_id=video.id, liked_by_id=carol.id, created_at=start + timedelta(hours=1)),
        ])
        test_db.commit()

        response = client.get(f"{LIKES_URL}/videos/{video.id}", headers=auth_headers)

        assert response.status_code == 200
        likes = response.json()["data"]
        assert [like["likedBy"]["username"] for like in likes] == ["carol", "bob"]
        assert set(likes[0]["likedBy"]) == {"id", "username", "fullName", "avatar"}
        assert likes[1]["likedAt"].startswith("2024-04-01T00:00:00")
        liked_video = likes[0]["likedVideo"]
        assert liked_video["title"] == "Liked"
        assert liked_video["ownerDetails"] == {
            "username": "alice",
            "fullName": "Alice",
            "avatar": test_user.avatar,
        }

    def test_video_likers_empty(self, client: TestClient, test_user: User, auth_headers, create_video):
        video = create_video(test_user)

        response = client.get(f"{LIKES_URL}/videos/{video.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == []

    def test_video_likers_unknown_video(self, client: TestClient, auth_headers):
        response = client.get(f"{LIKES_URL}/videos/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    def test_my_liked_videos(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User,
        auth_headers2, create_video, create_tweet
    ):
        """Test only the viewer's video likes are listed, most recent first."""
        first = create_video(test_user, "First")
        second = create_video(test_user, "Second")
        start = datetime(2024, 4, 1)
        test_db.add_all([
            Like(video_id=first.id, liked_by_id=test_user2.id, created_at=start),
            Like(video_id=second.id, liked_by_id=test_user2.id, created_at=start + timedelta(hours=1)),
            Like(video_id=first.id, liked_by_id=test_user.id, created_at=start),
            Like(tweet_id=create_tweet(test_user).id, liked_by_id=test_user2.id, created_at=start),
        ])
        test_db.commit()

        response = client.get(f"{LIKES_URL}/videos", headers=auth_headers2)

        assert response.status_code == 200
        liked = response.json()["data"]
        assert [like["likedVideo"]["title"] for like in liked] == ["Second", "First"]
        assert liked[0]["likedVideo"]["ownerDetails"]["username"] == "alice"
