"""Playlist endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.middleware.auth import get_current_user
from vidtube.models.user import User
from vidtube.readmodels import views
from vidtube.schemas import PlaylistBody
from vidtube.services.playlist_service import PlaylistService
from vidtube.utils.responses import api_response
from vidtube.utils.validators import parse_id

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_playlist(
    body: PlaylistBody,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    playlist = PlaylistService.create_playlist(db, current_user, body.name, body.description)
    return api_response(playlist, "Playlist created successfully", status.HTTP_201_CREATED)


@router.get("/user/{user_id}")
def get_user_playlists(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    playlists = views.user_playlists(db, parse_id(user_id, "user"))
    return api_response(playlists, "Playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist(
    playlist_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Playlist with its published videos, totals and owner."""
    playlist = views.playlist_detail(db, parse_id(playlist_id, "playlist"))
    return api_response(playlist, "Playlist fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    playlist = PlaylistService.add_video(db, current_user, video_id, playlist_id)
    return api_response(playlist, "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    playlist = PlaylistService.remove_video(db, current_user, video_id, playlist_id)
    return api_response(playlist, "Video removed from playlist successfully")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    body: PlaylistBody,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    playlist = PlaylistService.update_playlist(db, current_user, playlist_id, body.name, body.description)
    return api_response(playlist, "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(
    playlist_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    PlaylistService.delete_playlist(db, current_user, playlist_id)
    return api_response({}, "Playlist deleted successfully")
