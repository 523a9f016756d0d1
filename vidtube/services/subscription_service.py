"""Subscription toggles."""

from sqlalchemy.orm import Session

from vidtube.exceptions import ValidationError
from vidtube.models import Subscription, User
from vidtube.services.access import get_or_404, toggle_membership
from vidtube.services.logging_service import app_logger
from vidtube.utils.validators import parse_id


class SubscriptionService:

    @staticmethod
    def toggle_subscription(db: Session, user: User, channel_id: str) -> dict:
        """
        Subscribe to a channel, or unsubscribe if already subscribed.

        Raises:
            ValidationError: If the id is malformed or the user targets their own channel
            NotFoundError: If the channel does not exist
        """
        channel_uuid = parse_id(channel_id, "channel")
        if channel_uuid == user.id:
            raise ValidationError("You cannot subscribe to your own channel")
        get_or_404(db, User, channel_uuid, "Channel")

        is_subscribed = toggle_membership(db, Subscription, subscriber_id=user.id, channel_id=channel_uuid)
        app_logger.debug(
            "Subscription toggled",
            subscriber_id=str(user.id),
            channel_id=str(channel_uuid),
            subscribed=is_subscribed
        )
        return {"isSubscribed": is_subscribed}
