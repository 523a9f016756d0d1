"""Video mutations and single-video reads."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from vidtube.exceptions import ValidationError
from vidtube.models import User, Video, WatchHistory
from vidtube.readmodels.collections import get_collection, load_document
from vidtube.services.access import get_owned, get_visible_video
from vidtube.services.logging_service import app_logger
from vidtube.services.media_service import MediaStorage
from vidtube.utils.validators import clean_text, parse_id, require_fields


class VideoService:
    """Service for publishing, editing and deleting videos."""

    @staticmethod
    def to_document(video: Video) -> dict:
        return get_collection("videos").to_document(video)

    @staticmethod
    def publish_video(
        db: Session,
        storage: MediaStorage,
        owner: User,
        title: Optional[str],
        description: Optional[str],
        video_path: Optional[str],
        thumbnail_path: Optional[str]
    ) -> dict:
        """
        Upload a video and its thumbnail and create the record.

        Both assets are removed from the media host again if the record
        cannot be written.

        Raises:
            ValidationError: If a field or either file is missing
            UploadError: If the media host rejects an upload
        """
        require_fields(title=title, description=description)
        if not (video_path and thumbnail_path):
            raise ValidationError("Video file and thumbnail are required")

        video_asset = storage.upload_asset(video_path, probe=True)
        try:
            thumbnail_asset = storage.upload_asset(thumbnail_path)
        except Exception:
            storage.delete_asset(video_asset.url)
            raise

        video = Video(
            owner_id=owner.id,
            title=clean_text(title, max_length=255),
            description=clean_text(description),
            video_file=video_asset.url,
            thumbnail=thumbnail_asset.url,
            duration=video_asset.duration
        )
        db.add(video)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            storage.delete_asset(video_asset.url)
            storage.delete_asset(thumbnail_asset.url)
            raise
        db.refresh(video)

        app_logger.info("Video published", video_id=str(video.id), owner_id=str(owner.id))
        return VideoService.to_document(video)

    @staticmethod
    def get_video(db: Session, video_id: str, viewer: User) -> dict:
        """
        Fetch a video and record the view.

        The view counter is incremented in the database and the viewer's
        watch history entry for the video is created or moved to now.
        Unpublished videos are visible to their owner only.
        """
        video_uuid = parse_id(video_id, "video")
        video = get_visible_video(db, video_uuid, viewer.id)

        try:
            VideoService._record_view(db, viewer.id, video_uuid)
        except IntegrityError:
            # Another request recorded the same first view concurrently
            db.rollback()
            VideoService._record_view(db, viewer.id, video_uuid)

        document = load_document(db, "videos", video_uuid)
        document["ownerDetails"] = load_document(db, "users", video.owner_id)
        return document

    @staticmethod
    def _record_view(db: Session, user_id: UUID, video_id: UUID) -> None:
        db.execute(update(Video).where(Video.id == video_id).values(views=Video.views + 1))
        entry = db.query(WatchHistory).filter_by(user_id=user_id, video_id=video_id).first()
        if entry is not None:
            entry.watched_at = datetime.utcnow()
        else:
            db.add(WatchHistory(user_id=user_id, video_id=video_id))
        db.commit()

    @staticmethod
    def update_video(
        db: Session,
        storage: MediaStorage,
        user: User,
        video_id: str,
        title: Optional[str],
        description: Optional[str],
        thumbnail_path: Optional[str] = None
    ) -> dict:
        """
        Update title and description, and optionally replace the thumbnail.

        The superseded thumbnail is purged from the media host only after the
        new one is stored.

        Raises:
            ValidationError: If the id is malformed or a field is blank
            NotFoundError: If the video does not exist
            ForbiddenError: If the requester does not own the video
        """
        video_uuid = parse_id(video_id, "video")
        require_fields(title=title, description=description)
        video = get_owned(db, Video, video_uuid, user.id, "Video")

        video.title = clean_text(title, max_length=255)
        video.description = clean_text(description)

        if thumbnail_path:
            def save(asset):
                video.thumbnail = asset.url
                try:
                    db.commit()
                except SQLAlchemyError:
                    db.rollback()
                    raise

            storage.replace_asset(thumbnail_path, video.thumbnail, on_uploaded=save)
        else:
            db.commit()

        db.refresh(video)
        return VideoService.to_document(video)

    @staticmethod
    def delete_video(db: Session, storage: MediaStorage, user: User, video_id: str) -> None:
        """
        Delete a video, then purge its video file and thumbnail.

        Each asset deletion is attempted once, independently of the other.
        """
        video_uuid = parse_id(video_id, "video")
        video = get_owned(db, Video, video_uuid, user.id, "Video")
        assets = (video.video_file, video.thumbnail)

        db.delete(video)
        db.commit()

        for url in assets:
            storage.delete_asset(url)
        app_logger.info("Video deleted", video_id=str(video_uuid))

    @staticmethod
    def toggle_publish(db: Session, user: User, video_id: str) -> dict:
        video_uuid = parse_id(video_id, "video")
        video = get_owned(db, Video, video_uuid, user.id, "Video")

        video.is_published = not video.is_published
        db.commit()
        db.refresh(video)
        return VideoService.to_document(video)
