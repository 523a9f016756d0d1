"""Like endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.middleware.auth import get_current_user
from vidtube.models.user import User
from vidtube.readmodels import views
from vidtube.services.like_service import LikeService
from vidtube.utils.responses import api_response
from vidtube.utils.validators import parse_id

router = APIRouter()


def _toggle_message(result: dict) -> str:
    return "Liked successfully" if result["isLiked"] else "Like removed successfully"


@router.post("/toggle/v/{video_id}")
def toggle_video_like(
    video_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = LikeService.toggle_like(db, current_user, "video", video_id)
    return api_response(result, _toggle_message(result))


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = LikeService.toggle_like(db, current_user, "comment", comment_id)
    return api_response(result, _toggle_message(result))


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(
    tweet_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = LikeService.toggle_like(db, current_user, "tweet", tweet_id)
    return api_response(result, _toggle_message(result))


@router.get("/videos")
def get_my_liked_videos(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Videos the requesting user has liked, most recent like first."""
    liked = views.liked_videos(db, current_user.id)
    return api_response(liked, "Liked videos fetched successfully")


@router.get("/videos/{video_id}")
def get_video_likes(
    video_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Likes on one video: who liked it and when."""
    likes = views.video_likers(db, parse_id(video_id, "video"), current_user.id)
    return api_response(likes, "Liked videos fetched successfully")
