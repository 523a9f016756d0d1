"""Tweet mutations."""

from typing import Optional

from sqlalchemy.orm import Session

from vidtube.models import Tweet, User
from vidtube.readmodels.collections import get_collection
from vidtube.services.access import get_owned
from vidtube.utils.validators import clean_text, parse_id, require_fields


class TweetService:

    @staticmethod
    def to_document(tweet: Tweet) -> dict:
        return get_collection("tweets").to_document(tweet)

    @staticmethod
    def create_tweet(db: Session, user: User, content: Optional[str]) -> dict:
        require_fields(message="Content is required", content=content)

        tweet = Tweet(content=clean_text(content), owner_id=user.id)
        db.add(tweet)
        db.commit()
        db.refresh(tweet)
        return TweetService.to_document(tweet)

    @staticmethod
    def update_tweet(db: Session, user: User, tweet_id: str, content: Optional[str]) -> dict:
        tweet_uuid = parse_id(tweet_id, "tweet")
        require_fields(message="Content is required", content=content)
        tweet = get_owned(db, Tweet, tweet_uuid, user.id, "Tweet")

        tweet.content = clean_text(content)
        db.commit()
        db.refresh(tweet)
        return TweetService.to_document(tweet)

    @staticmethod
    def delete_tweet(db: Session, user: User, tweet_id: str) -> None:
        tweet_uuid = parse_id(tweet_id, "tweet")
        tweet = get_owned(db, Tweet, tweet_uuid, user.id, "Tweet")

        db.delete(tweet)
        db.commit()
