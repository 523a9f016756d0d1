"""Tweet endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.middleware.auth import get_current_user
from vidtube.models.user import User
from vidtube.readmodels import views
from vidtube.schemas import ContentBody
from vidtube.services.tweet_service import TweetService
from vidtube.utils.responses import api_response
from vidtube.utils.validators import parse_id

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_tweet(
    body: ContentBody,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    tweet = TweetService.create_tweet(db, current_user, body.content)
    return api_response(tweet, "Tweet created successfully", status.HTTP_201_CREATED)


@router.get("/user/{user_id}")
def get_user_tweets(
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """A user's tweets, newest first, with like counts and the viewer's isLiked flag."""
    tweets = views.tweet_feed(db, parse_id(user_id, "user"), current_user.id)
    return api_response(tweets, "Tweets fetched successfully")


@router.patch("/{tweet_id}")
def update_tweet(
    tweet_id: str,
    body: ContentBody,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    tweet = TweetService.update_tweet(db, current_user, tweet_id, body.content)
    return api_response(tweet, "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(
    tweet_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    TweetService.delete_tweet(db, current_user, tweet_id)
    return api_response({}, "Tweet deleted successfully")
