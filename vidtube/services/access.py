"""Existence, ownership and toggle helpers shared by the mutation services."""

from typing import Any, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidtube.exceptions import ForbiddenError, NotFoundError
from vidtube.models import Video
from vidtube.services.logging_service import app_logger

ModelT = TypeVar("ModelT")


def get_or_404(db: Session, model: Type[ModelT], record_id: Any, label: str) -> ModelT:
    """Load a row by primary key or fail with NotFoundError."""
    record = db.get(model, record_id)
    if record is None:
        raise NotFoundError(f"{label} not found")
    return record


def get_owned(db: Session, model: Type[ModelT], record_id: Any, user_id: Any, label: str) -> ModelT:
    """
    Load a row the requester owns.

    Raises:
        NotFoundError: If the row does not exist
        ForbiddenError: If ``owner_id`` is not the requester
    """
    record = get_or_404(db, model, record_id, label)
    if record.owner_id != user_id:
        raise ForbiddenError(f"Only the owner can modify this {label.lower()}")
    return record


def toggle_membership(db: Session, model: Type[Any], **keys: Any) -> bool:
    """
    Flip the presence of the row identified by ``keys``.

    The unique constraint on ``keys`` decides a race between two identical
    toggles: the loser rolls back and reports the row as present.

    Returns:
        True if the row exists after the call
    """
    existing = db.query(model).filter_by(**keys).first()
    if existing is not None:
        db.delete(existing)
        db.commit()
        return False

    db.add(model(**keys))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        app_logger.info("Toggle lost a race to an identical toggle", model=model.__name__)
    return True


def get_visible_video(db: Session, video_id: Any, viewer_id: Any) -> Video:
    """
    Load a video the viewer may see: published, or owned by the viewer.

    Raises:
        NotFoundError: If the video does not exist or is hidden from the viewer
    """
    video = db.get(Video, video_id)
    if video is None or (not video.is_published and video.owner_id != viewer_id):
        raise NotFoundError("Video not found")
    return video
