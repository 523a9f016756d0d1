"""
Tests for playlist endpoints and the playlist read models.
"""

import uuid
import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from vidtube.models import Playlist, PlaylistVideo, User

PLAYLISTS_URL = "/api/v1/playlists"


@pytest.fixture
def create_playlist(test_db: Session):
    def _create(owner: User, name: str = "Favourites", updated_at=None) -> Playlist:
        playlist = Playlist(name=name, description=f"{name} playlist", owner_id=owner.id)
        if updated_at is not None:
            playlist.updated_at = updated_at
        test_db.add(playlist)
        test_db.commit()
        test_db.refresh(playlist)
        return playlist

    return _create


def _add(client: TestClient, video, playlist, headers):
    return client.patch(f"{PLAYLISTS_URL}/add/{video.id}/{playlist.id}", headers=headers)


def _remove(client: TestClient, video, playlist, headers):
    return client.patch(f"{PLAYLISTS_URL}/remove/{video.id}/{playlist.id}", headers=headers)


class TestPlaylistCrud:

    def test_create_playlist(self, client: TestClient, test_user: User, auth_headers):
        response = client.post(
            PLAYLISTS_URL,
            json={"name": "Road trip", "description": "Songs"},
            headers=auth_headers
        )

        assert response.status_code == 201
        playlist = response.json()["data"]
        assert playlist["name"] == "Road trip"
        assert playlist["owner"] == str(test_user.id)
        assert playlist["videos"] == []

    def test_create_requires_name_and_description(self, client: TestClient, auth_headers):
        response = client.post(PLAYLISTS_URL, json={"name": "Only a name"}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["errors"] == ["description is required"]

    def test_update_playlist(self, client: TestClient, test_user: User, auth_headers, create_playlist):
        playlist = create_playlist(test_user)

        response = client.patch(
            f"{PLAYLISTS_URL}/{playlist.id}",
            json={"name": "Renamed", "description": "New"},
            headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Renamed"

    def test_non_owner_cannot_update(
        self, client: TestClient, test_db: Session, test_user: User, auth_headers2, create_playlist
    ):
        playlist = create_playlist(test_user)

        response = client.patch(
            f"{PLAYLISTS_URL}/{playlist.id}",
            json={"name": "Mine now", "description": "x"},
            headers=auth_headers2
        )

        assert response.status_code == 403
        test_db.expire_all()
        assert test_db.get(Playlist, playlist.id).name == "Favourites"

    def test_delete_playlist_keeps_videos(
        self, client: TestClient, test_db: Session, test_user: User, auth_headers, create_playlist, create_video
    ):
        playlist = create_playlist(test_user)
        video = create_video(test_user)
        _add(client, video, playlist, auth_headers)
        playlist_id = playlist.id

        response = client.delete(f"{PLAYLISTS_URL}/{playlist_id}", headers=auth_headers)

        assert response.status_code == 200
        test_db.expire_all()
        assert test_db.get(Playlist, playlist_id) is None
        assert test_db.query(PlaylistVideo).count() == 0
        assert client.get(f"/api/v1/videos/{video.id}", headers=auth_headers).status_code == 200

    def test_non_owner_cannot_delete(self, client: TestClient, test_user: User, auth_headers2, create_playlist):
        playlist = create_playlist(test_user)

        response = client.delete(f"{PLAYLISTS_URL}/{playlist.id}", headers=auth_headers2)

        assert response.status_code == 403


class TestPlaylistMembership:

    def test_add_keeps_insertion_order(
        self, client: TestClient, test_user: User, auth_headers, create_playlist, create_video
    ):
        playlist = create_playlist(test_user)
        first = create_video(test_user, "First")
        second = create_video(test_user, "Second")

        _add(client, second, playlist, auth_headers)
        response = _add(client, first, playlist, auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["videos"] == [str(second.id), str(first.id)]

    def test_adding_twice_does_not_duplicate(
        self, client: TestClient, test_user: User, auth_headers, create_playlist, create_video
    ):
        playlist = create_playlist(test_user)
        video = create_video(test_user)

        _add(client, video, playlist, auth_headers)
        response = _add(client, video, playlist, auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["videos"] == [str(video.id)]

    def test_add_someone_elses_video(
        self, client: TestClient, test_user: User, test_user2: User, auth_headers, create_playlist, create_video
    ):
        """Test any existing video can be added to a playlist the requester owns."""
        playlist = create_playlist(test_user)
        video = create_video(test_user2)

        response = _add(client, video, playlist, auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["videos"] == [str(video.id)]

    def test_add_to_someone_elses_playlist(
        self, client: TestClient, test_user: User, test_user2: User, auth_headers2, create_playlist, create_video
    ):
        playlist = create_playlist(test_user)
        video = create_video(test_user2)

        response = _add(client, video, playlist, auth_headers2)

        assert response.status_code == 403

    def test_add_unknown_video(self, client: TestClient, test_user: User, auth_headers, create_playlist):
        playlist = create_playlist(test_user)

        response = client.patch(f"{PLAYLISTS_URL}/add/{uuid.uuid4()}/{playlist.id}", headers=auth_headers)

        assert response.status_code == 404

    def test_remove_video(self, client: TestClient, test_user: User, auth_headers, create_playlist, create_video):
        playlist = create_playlist(test_user)
        keep = create_video(test_user, "Keep")
        drop = create_video(test_user, "Drop")
        _add(client, keep, playlist, auth_headers)
        _add(client, drop, playlist, auth_headers)

        response = _remove(client, drop, playlist, auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["videos"] == [str(keep.id)]

    def test_remove_absent_video_is_noop(
        self, client: TestClient, test_user: User, auth_headers, create_playlist, create_video
    ):
        playlist = create_playlist(test_user)
        video = create_video(test_user)

        response = _remove(client, video, playlist, auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["videos"] == []


@pytest.mark.readmodel
class TestPlaylistViews:

    def test_detail_counts_published_videos_only(
        self, client: TestClient, test_user: User, test_user2: User, auth_headers, auth_headers2,
        create_playlist, create_video
    ):
        """Test totals and returned videos both skip unpublished videos."""
        playlist = create_playlist(test_user, "Mix")
        public_a = create_video(test_user, "Public A", views=10)
        draft = create_video(test_user, "Draft", views=100, is_published=False)
        public_b = create_video(test_user2, "Public B", views=5)
        for video in (public_b, draft, public_a):
            assert _add(client, video, playlist, auth_headers).status_code == 200

        response = client.get(f"{PLAYLISTS_URL}/{playlist.id}", headers=auth_headers2)

        assert response.status_code == 200
        detail = response.json()["data"]
        assert detail["name"] == "Mix"
        assert detail["totalVideos"] == 2
        assert detail["totalViews"] == 15
        assert [video["title"] for video in detail["videos"]] == ["Public B", "Public A"]
        assert detail["owner"]["username"] == "alice"
        assert "email" not in detail["owner"]

    def test_detail_of_empty_playlist(self, client: TestClient, test_user: User, auth_headers, create_playlist):
        playlist = create_playlist(test_user)

        response = client.get(f"{PLAYLISTS_URL}/{playlist.id}", headers=auth_headers)

        detail = response.json()["data"]
        assert detail["videos"] == []
        assert detail["totalVideos"] == 0
        assert detail["totalViews"] == 0

    def test_detail_unknown_playlist(self, client: TestClient, auth_headers):
        response = client.get(f"{PLAYLISTS_URL}/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404

    def test_user_playlists_most_recently_updated_first(
        self, client: TestClient, test_user: User, test_user2: User, auth_headers, create_playlist, create_video
    ):
        start = datetime(2024, 2, 1)
        older = create_playlist(test_user, "Older", updated_at=start)
        create_playlist(test_user, "Newer", updated_at=start + timedelta(days=1))
        create_playlist(test_user2, "Bob's")
        video = create_video(test_user, views=7)
        _add(client, video, older, auth_headers)

        response = client.get(f"{PLAYLISTS_URL}/user/{test_user.id}", headers=auth_headers)

        assert response.status_code == 200
        playlists = response.json()["data"]
        assert [playlist["name"] for playlist in playlists] == ["Older", "Newer"]
        assert playlists[0]["totalVideos"] == 1
        assert playlists[0]["totalViews"] == 7
        assert playlists[1]["totalVideos"] == 0
        assert set(playlists[0]) == {"id", "name", "description", "totalVideos", "totalViews", "updatedAt"}

    def test_user_playlists_unknown_user(self, client: TestClient, auth_headers):
        response = client.get(f"{PLAYLISTS_URL}/user/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 404
