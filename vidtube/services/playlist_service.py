"""Playlist mutations."""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vidtube.models import Playlist, PlaylistVideo, User, Video
from vidtube.readmodels.collections import load_document
from vidtube.services.access import get_or_404, get_owned
from vidtube.services.logging_service import app_logger
from vidtube.utils.validators import clean_text, parse_id, require_fields


class PlaylistService:
    """
    Service for playlists.

    Only the playlist owner may change a playlist. Adding or removing a video
    requires the video to exist but not to be owned by the requester.
    """

    @staticmethod
    def create_playlist(db: Session, user: User, name: Optional[str], description: Optional[str]) -> dict:
        require_fields(name=name, description=description)

        playlist = Playlist(
            name=clean_text(name, max_length=255),
            description=clean_text(description),
            owner_id=user.id
        )
        db.add(playlist)
        db.commit()
        return load_document(db, "playlists", playlist.id)

    @staticmethod
    def update_playlist(
        db: Session,
        user: User,
        playlist_id: str,
        name: Optional[str],
        description: Optional[str]
    ) -> dict:
        playlist_uuid = parse_id(playlist_id, "playlist")
        require_fields(name=name, description=description)
        playlist = get_owned(db, Playlist, playlist_uuid, user.id, "Playlist")

        playlist.name = clean_text(name, max_length=255)
        playlist.description = clean_text(description)
        db.commit()
        return load_document(db, "playlists", playlist_uuid)

    @staticmethod
    def delete_playlist(db: Session, user: User, playlist_id: str) -> None:
        playlist_uuid = parse_id(playlist_id, "playlist")
        playlist = get_owned(db, Playlist, playlist_uuid, user.id, "Playlist")

        db.delete(playlist)
        db.commit()

    @staticmethod
    def add_video(db: Session, user: User, video_id: str, playlist_id: str) -> dict:
        """
        Append a video to a playlist. Adding a video that is already in the
        playlist leaves it unchanged.
        """
        video_uuid = parse_id(video_id, "video")
        playlist_uuid = parse_id(playlist_id, "playlist")
        get_or_404(db, Video, video_uuid, "Video")
        playlist = get_owned(db, Playlist, playlist_uuid, user.id, "Playlist")

        present = db.query(PlaylistVideo).filter_by(playlist_id=playlist_uuid, video_id=video_uuid).first()
        if present is None:
            last = db.query(func.max(PlaylistVideo.position)).filter(
                PlaylistVideo.playlist_id == playlist_uuid
            ).scalar()
            db.add(PlaylistVideo(
                playlist_id=playlist_uuid,
                video_id=video_uuid,
                position=0 if last is None else last + 1
            ))
            playlist.updated_at = datetime.utcnow()
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                app_logger.info("Video was added to the playlist concurrently", playlist_id=str(playlist_uuid))

        return load_document(db, "playlists", playlist_uuid)

    @staticmethod
    def remove_video(db: Session, user: User, video_id: str, playlist_id: str) -> dict:
        """Remove one video from a playlist; the playlist itself is kept."""
        video_uuid = parse_id(video_id, "video")
        playlist_uuid = parse_id(playlist_id, "playlist")
        get_or_404(db, Video, video_uuid, "Video")
        playlist = get_owned(db, Playlist, playlist_uuid, user.id, "Playlist")

        removed = db.query(PlaylistVideo).filter_by(
            playlist_id=playlist_uuid, video_id=video_uuid
        ).delete(synchronize_session=False)
        if removed:
            playlist.updated_at = datetime.utcnow()
        db.commit()

        return load_document(db, "playlists", playlist_uuid)
