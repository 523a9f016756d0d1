"""Database models."""

from vidtube.models.user import User, WatchHistory
from vidtube.models.video import Video
from vidtube.models.comment import Comment
from vidtube.models.tweet import Tweet
from vidtube.models.playlist import Playlist, PlaylistVideo
from vidtube.models.like import Like
from vidtube.models.subscription import Subscription

__all__ = [
    "User",
    "WatchHistory",
    "Video",
    "Comment",
    "Tweet",
    "Playlist",
    "PlaylistVideo",
    "Like",
    "Subscription",
]
