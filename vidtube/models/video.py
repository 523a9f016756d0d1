"""Video model."""

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Integer, Float, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from vidtube.database import Base


class Video(Base):
    """An uploaded video; the owner never changes after creation."""

    __tablename__ = "videos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Media URLs on the remote media host
    video_file = Column(String(500), nullable=False)
    thumbnail = Column(String(500), nullable=False)

    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=False)
    duration = Column(Float, default=0.0, nullable=False)  # seconds
    views = Column(Integer, default=0, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    owner = relationship("User", back_populates="videos")
    comments = relationship("Comment", back_populates="video", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Video(id={self.id}, title='{self.title}', views={self.views})>"
