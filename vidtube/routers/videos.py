"""Video endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.middleware.auth import get_current_user
from vidtube.middleware.uploads import UploadStage, get_upload_stage
from vidtube.models.user import User
from vidtube.readmodels import views
from vidtube.services.media_service import MediaStorage, get_media_storage
from vidtube.services.video_service import VideoService
from vidtube.utils.responses import api_response
from vidtube.utils.validators import parse_id

router = APIRouter()


@router.get("")
def get_all_videos(
    page: int = Query(1),
    limit: int = Query(10),
    query: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_type: Optional[str] = Query(None, alias="sortType"),
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Paginated video feed.

    Query parameters:
    - query: case-insensitive title substring
    - userId: include this user's videos
    - sortBy: createdAt (default), updatedAt, views, duration or title
    - sortType: asc or desc (default)
    """
    owner_id = parse_id(user_id, "user") if user_id is not None else None
    feed = views.video_feed(
        db,
        page=page,
        limit=limit,
        query=query,
        sort_by=sort_by,
        sort_type=sort_type,
        user_id=owner_id,
        viewer_id=current_user.id
    )
    return api_response(feed, "Videos fetched successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
    stage: UploadStage = Depends(get_upload_stage)
):
    video = VideoService.publish_video(
        db,
        storage,
        current_user,
        title=title,
        description=description,
        video_path=stage.save(video_file),
        thumbnail_path=stage.save(thumbnail)
    )
    return api_response(video, "Video published successfully", status.HTTP_201_CREATED)


@router.get("/{video_id}")
def get_video(
    video_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Fetch a video; counts a view and records it in the viewer's watch history."""
    video = VideoService.get_video(db, video_id, current_user)
    return api_response(video, "Video fetched successfully")


@router.patch("/{video_id}")
def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage),
    stage: UploadStage = Depends(get_upload_stage)
):
    video = VideoService.update_video(
        db,
        storage,
        current_user,
        video_id,
        title=title,
        description=description,
        thumbnail_path=stage.save(thumbnail)
    )
    return api_response(video, "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(
    video_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_media_storage)
):
    VideoService.delete_video(db, storage, current_user, video_id)
    return api_response({}, "Video deleted successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(
    video_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    video = VideoService.toggle_publish(db, current_user, video_id)
    return api_response(video, "Publish status updated successfully")
