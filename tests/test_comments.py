"""
Tests for comment endpoints and the comment list read model.
"""

import uuid
import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from vidtube.models import Comment, Like, User

COMMENTS_URL = "/api/v1/comments"


@pytest.mark.readmodel
class TestCommentList:

    def test_comments_newest_first_with_likes(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User,
        auth_headers, create_video, create_comment
    ):
        """Test owner summary, like counts and the viewer's isLiked flag."""
        video = create_video(test_user)
        start = datetime(2024, 3, 1)
        older = create_comment(test_user2, video, "First!", created_at=start)
        newer = create_comment(test_user, video, "Thanks", created_at=start + timedelta(minutes=5))
        test_db.add_all([
            Like(comment_id=older.id, liked_by_id=test_user.id),
            Like(comment_id=older.id, liked_by_id=test_user2.id),
            Like(comment_id=newer.id, liked_by_id=test_user2.id),
        ])
        test_db.commit()

        response = client.get(f"{COMMENTS_URL}/{video.id}", headers=auth_headers)

        assert response.status_code == 200
        page = response.json()["data"]
        assert page["totalRecords"] == 2
        first, second = page["records"]
        assert first["content"] == "Thanks"
        assert first["likesCount"] == 1
        assert first["isLiked"] is False
        assert first["owner"]["username"] == "alice"
        assert second["content"] == "First!"
        assert second["likesCount"] == 2
        assert second["isLiked"] is True
        assert set(second["owner"]) == {"id", "username", "fullName", "avatar"}

    def test_comments_are_paginated(
        self, client: TestClient, test_user: User, auth_headers, create_video, create_comment
    ):
        video = create_video(test_user)
        start = datetime(2024, 3, 1)
        for i in range(7):
            create_comment(test_user, video, f"Comment {i}", created_at=start + timedelta(minutes=i))

        response = client.get(f"{COMMENTS_URL}/{video.id}", params={"page": 2, "limit": 5}, headers=auth_headers)

        page = response.json()["data"]
        assert [record["content"] for record in page["records"]] == ["Comment 1", "Comment 0"]
        assert page["totalPages"] == 2

    def test_no_comments_is_empty_page(self, client: TestClient, test_user: User, auth_headers, create_video):
        video = create_video(test_user)

        response = client.get(f"{COMMENTS_URL}/{video.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["records"] == []

    def test_unknown_video(self, client: TestClient, auth_headers):
        response = client.get(f"{COMMENTS_URL}/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    def test_comments_only_from_requested_video(
        self, client: TestClient, test_user: User, auth_headers, create_video, create_comment
    ):
        video = create_video(test_user, "One")
        other = create_video(test_user, "Two")
        create_comment(test_user, video, "Here")
        create_comment(test_user, other, "Elsewhere")

        response = client.get(f"{COMMENTS_URL}/{video.id}", headers=auth_headers)

        assert [record["content"] for record in response.json()["data"]["records"]] == ["Here"]


class TestCommentMutations:

    def test_add_comment(self, client: TestClient, test_user: User, test_user2: User, auth_headers2, create_video):
        video = create_video(test_user)

        response = client.post(f"{COMMENTS_URL}/{video.id}", json={"content": "Great video"}, headers=auth_headers2)

        assert response.status_code == 201
        comment = response.json()["data"]
        assert comment["content"] == "Great video"
        assert comment["owner"] == str(test_user2.id)
        assert comment["video"] == str(video.id)

    def test_add_blank_comment(self, client: TestClient, test_user: User, auth_headers, create_video):
        video = create_video(test_user)

        response = client.post(f"{COMMENTS_URL}/{video.id}", json={"content": "   "}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Content is required"

    def test_add_comment_unknown_video(self, client: TestClient, auth_headers, test_db: Session):
        response = client.post(f"{COMMENTS_URL}/{uuid.uuid4()}", json={"content": "Hi"}, headers=auth_headers)

        assert response.status_code == 404
        assert test_db.query(Comment).count() == 0

    def test_update_own_comment(self, client: TestClient, test_user: User, auth_headers, create_video, create_comment):
        comment = create_comment(test_user, create_video(test_user), "Typo")

        response = client.patch(f"{COMMENTS_URL}/c/{comment.id}", json={"content": "Fixed"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["content"] == "Fixed"

    def test_cannot_update_others_comment(
        self, client: TestClient, test_db: Session, test_user: User, auth_headers2, create_video, create_comment
    ):
        comment = create_comment(test_user, create_video(test_user), "Mine")

        response = client.patch(f"{COMMENTS_URL}/c/{comment.id}", json={"content": "Yours"}, headers=auth_headers2)

        assert response.status_code == 403
        test_db.expire_all()
        assert test_db.get(Comment, comment.id).content == "Mine"

    def test_delete_comment_removes_its_likes(
        self, client: TestClient, test_db: Session, test_user: User, test_user2: User,
        auth_headers, create_video, create_comment
    ):
        comment = create_comment(test_user, create_video(test_user))
        comment_id = comment.id
        test_db.add(Like(comment_id=comment_id, liked_by_id=test_user2.id))
        test_db.commit()

        response = client.delete(f"{COMMENTS_URL}/c/{comment_id}", headers=auth_headers)

        assert response.status_code == 200
        test_db.expire_all()
        assert test_db.get(Comment, comment_id) is None
        assert test_db.query(Like).filter_by(comment_id=comment_id).count() == 0

    def test_cannot_delete_others_comment(
        self, client: TestClient, test_user: User, auth_headers2, create_video, create_comment
    ):
        comment = create_comment(test_user, create_video(test_user))

        response = client.delete(f"{COMMENTS_URL}/c/{comment.id}", headers=auth_headers2)

        assert response.status_code == 403

    def test_malformed_comment_id(self, client: TestClient, auth_headers):
        response = client.delete(f"{COMMENTS_URL}/c/123", headers=auth_headers)

        assert response.status_code == 400
