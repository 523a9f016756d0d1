"""Subscription endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.middleware.auth import get_current_user
from vidtube.models.user import User
from vidtube.readmodels import views
from vidtube.services.subscription_service import SubscriptionService
from vidtube.utils.responses import api_response
from vidtube.utils.validators import parse_id

router = APIRouter()


@router.get("/channel/{subscriber_id}")
def get_subscribed_channels(
    subscriber_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Channels the given user subscribes to."""
    channels = views.subscribed_channels(db, parse_id(subscriber_id, "subscriber"))
    return api_response(channels, "Subscribed channels fetched successfully")


@router.get("/user/{channel_id}")
def get_channel_subscribers(
    channel_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Subscribers of a channel, each with whether the viewer subscribes to them."""
    subscribers = views.channel_subscribers(db, parse_id(channel_id, "channel"), current_user.id)
    return api_response(subscribers, "Subscribers fetched successfully")


@router.post("/user/{channel_id}")
def toggle_subscription(
    channel_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    result = SubscriptionService.toggle_subscription(db, current_user, channel_id)
    message = "Subscribed successfully" if result["isSubscribed"] else "Unsubscribed successfully"
    return api_response(result, message)
