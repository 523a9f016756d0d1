"""User model for authentication and channel ownership."""

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from vidtube.database import Base


class User(Base):
    """User account; every user is also a channel."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(100), nullable=False)
    hashed_password = Column(String(255), nullable=False)

    avatar = Column(String(500), nullable=False)
    cover_image = Column(String(500), nullable=False, default="")

    # Current session-rotation token; a refresh token is only honoured while it matches
    refresh_token = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    videos = relationship("Video", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    comments = relationship("Comment", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    tweets = relationship("Tweet", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    playlists = relationship("Playlist", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    watch_history = relationship("WatchHistory", back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username}, email={self.email})>"


class WatchHistory(Base):
    """A video the user has watched; one row per (user, video) pair."""

    __tablename__ = "watch_history"
    __table_args__ = (
        UniqueConstraint("user_id", "video_id", name="uq_watch_history_user_video"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(Uuid, ForeignKey("videos.id", ondelete="CASCADE"), nullable=False, index=True)
    watched_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="watch_history")

    def __repr__(self):
        return f"<WatchHistory(user_id={self.user_id}, video_id={self.video_id})>"
