"""Comment endpoints."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.middleware.auth import get_current_user
from vidtube.models.user import User
from vidtube.readmodels import views
from vidtube.schemas import ContentBody
from vidtube.services.comment_service import CommentService
from vidtube.utils.responses import api_response
from vidtube.utils.validators import parse_id

router = APIRouter()


@router.get("/{video_id}")
def get_video_comments(
    video_id: str,
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Paginated comments on a video, with like counts and the viewer's isLiked flag."""
    comments = views.comment_list(db, parse_id(video_id, "video"), current_user.id, page, limit)
    return api_response(comments, "Comments fetched successfully")


@router.post("/{video_id}", status_code=status.HTTP_201_CREATED)
def add_comment(
    video_id: str,
    body: ContentBody,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    comment = CommentService.add_comment(db, current_user, video_id, body.content)
    return api_response(comment, "Comment added successfully", status.HTTP_201_CREATED)


@router.patch("/c/{comment_id}")
def update_comment(
    comment_id: str,
    body: ContentBody,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    comment = CommentService.update_comment(db, current_user, comment_id, body.content)
    return api_response(comment, "Comment updated successfully")


@router.delete("/c/{comment_id}")
def delete_comment(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    CommentService.delete_comment(db, current_user, comment_id)
    return api_response({}, "Comment deleted successfully")
