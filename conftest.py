"""
Pytest configuration and shared fixtures for VidTube tests.
"""

import os
import tempfile

# Settings are read at import time; point them at throwaway resources first
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["UPLOAD_TEMP_DIR"] = tempfile.mkdtemp(prefix="vidtube-uploads-")
os.environ["COOKIE_SECURE"] = "false"
os.environ["MEDIA_BASE_URL"] = "https://media.test/vidtube"
os.environ.pop("SENTRY_DSN", None)

import pytest
from typing import Callable, Dict, Generator, Optional
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import MagicMock, patch

from vidtube.main import app
from vidtube.database import Base, get_db
from vidtube.models import Comment, Tweet, User, Video
from vidtube.services.media_service import MediaStorage, get_media_storage
from vidtube.utils.security import create_access_token, hash_password

MEDIA_BASE_URL = "https://media.test/vidtube"
TEST_PASSWORD = "password123"


TEST_DATABASE_URL = "sqlite:///:memory:"

@pytest.fixture(scope="function")
def test_db() -> Generator[Session, None, None]:
    """
    Empty schema per test on a single shared in-memory connection.

    StaticPool keeps the in-memory database alive across the sessions the
    app opens during one test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)

    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


# Media host fixtures
@pytest.fixture
def s3_client() -> MagicMock:
    """
    Mock boto3 S3 client backed by an in-memory key set.

    ``s3_client.stored_keys`` holds the keys currently in the bucket.
    """
    keys = set()
    client = MagicMock()
    client.stored_keys = keys
    client.upload_file.side_effect = lambda local_path, bucket, key: keys.add(key)
    client.list_objects_v2.side_effect = lambda Bucket, Prefix: {
        "Contents": [{"Key": key} for key in sorted(keys) if key.startswith(Prefix)]
    }
    client.delete_object.side_effect = lambda Bucket, Key: keys.discard(Key)
    return client


@pytest.fixture
def media_storage(s3_client: MagicMock) -> Generator[MediaStorage, None, None]:
    """
    Media storage over the mock client; ffprobe reports 42.5 seconds.
    """
    storage = MediaStorage(client=s3_client, bucket="test-bucket", base_url=MEDIA_BASE_URL)
    with patch("vidtube.services.media_service.probe_duration", return_value=42.5):
        yield storage


@pytest.fixture(scope="function")
def client(test_db: Session, media_storage: MediaStorage) -> Generator[TestClient, None, None]:
    """
    TestClient whose requests share the test session and the mock media host.
    """
    app.dependency_overrides[get_db] = lambda: test_db
    app.dependency_overrides[get_media_storage] = lambda: media_storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# User fixtures
def make_user(db: Session, username: str, password: str = TEST_PASSWORD) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
        hashed_password=hash_password(password),
        avatar=f"{MEDIA_BASE_URL}/{username}avatar.png",
        created_at=datetime.utcnow()
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user: User) -> Dict[str, str]:
    access_token = create_access_token(data={"sub": str(user.id), "username": user.username})
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def test_user(test_db: Session) -> User:
    """Channel owner used by most tests."""
    return make_user(test_db, "alice")


@pytest.fixture
def test_user2(test_db: Session) -> User:
    """Second account, usually the viewer or the non-owner."""
    return make_user(test_db, "bob")


@pytest.fixture
def auth_headers(test_user: User) -> Dict[str, str]:
    """Bearer header for alice."""
    return headers_for(test_user)


@pytest.fixture
def auth_headers2(test_user2: User) -> Dict[str, str]:
    """Bearer header for bob."""
    return headers_for(test_user2)


# Content fixtures
@pytest.fixture
def create_video(test_db: Session) -> Callable[..., Video]:
    """
    Factory for videos stored directly in the database.
    """
    def _create(
        owner: User,
        title: str = "Sample video",
        views: int = 0,
        is_published: bool = True,
        created_at: Optional[datetime] = None,
        duration: float = 60.0
    ) -> Video:
        stem = f"v{test_db.query(Video).count()}{owner.username}"
        video = Video(
            owner_id=owner.id,
            title=title,
            description=f"About {title}",
            video_file=f"{MEDIA_BASE_URL}/{stem}file.mp4",
            thumbnail=f"{MEDIA_BASE_URL}/{stem}thumb.png",
            duration=duration,
            views=views,
            is_published=is_published,
            created_at=created_at or datetime.utcnow()
        )
        test_db.add(video)
        test_db.commit()
        test_db.refresh(video)
        return video

    return _create


@pytest.fixture
def create_comment(test_db: Session) -> Callable[..., Comment]:
    """
    Factory for comments stored directly in the database.
    """
    def _create(owner: User, video: Video, content: str = "Nice video", created_at: Optional[datetime] = None) -> Comment:
        comment = Comment(
            owner_id=owner.id,
            video_id=video.id,
            content=content,
            created_at=created_at or datetime.utcnow()
        )
        test_db.add(comment)
        test_db.commit()
        test_db.refresh(comment)
        return comment

    return _create


@pytest.fixture
def create_tweet(test_db: Session) -> Callable[..., Tweet]:
    """
    Factory for tweets stored directly in the database.
    """
    def _create(owner: User, content: str = "Hello world", created_at: Optional[datetime] = None) -> Tweet:
        tweet = Tweet(owner_id=owner.id, content=content, created_at=created_at or datetime.utcnow())
        test_db.add(tweet)
        test_db.commit()
        test_db.refresh(tweet)
        return tweet

    return _create


def upload(name: str, content: bytes = b"binary-content", content_type: str = "application/octet-stream"):
    """Multipart file tuple for TestClient."""
    return (name, content, content_type)
