"""
Read-model views.

Every list or detail response that joins more than one store is built here
from a fixed pipeline. Views take the requesting viewer explicitly; a view
never reads request state.

Empty results are successful empty lists. A view fails with NotFoundError
only when the entity that scopes it (channel, user, video, playlist) does
not exist.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from vidtube.exceptions import NotFoundError, ValidationError
from vidtube.readmodels.collections import load_document
from vidtube.readmodels.expressions import (
    And,
    Contains,
    Eq,
    First,
    IsMember,
    IsSet,
    Or,
    Predicate,
    Size,
    Sum,
)
from vidtube.readmodels.pipeline import Pipeline

VIDEO_SORT_FIELDS = ("createdAt", "updatedAt", "views", "duration", "title")
SORT_TYPES = ("asc", "desc")

USER_SUMMARY = {"id": 1, "username": 1, "fullName": 1, "avatar": 1}

VIDEO_FIELDS = {
    "id": 1,
    "videoFile": 1,
    "thumbnail": 1,
    "title": 1,
    "description": 1,
    "duration": 1,
    "views": 1,
    "isPublished": 1,
    "owner": 1,
    "createdAt": 1,
}


def _require(db: Session, collection: str, document_id: UUID, label: str) -> dict:
    document = load_document(db, collection, document_id)
    if document is None:
        raise NotFoundError(f"{label} not found")
    return document


def visible_to(viewer_id: Optional[UUID]) -> Predicate:
    """Published videos, plus the viewer's own unpublished ones."""
    return Or(Eq("isPublished", True), Eq("owner", viewer_id))


def _require_video(db: Session, video_id: UUID, viewer_id: Optional[UUID]) -> dict:
    """The video document, or NotFoundError when it is missing or hidden from the viewer."""
    video = load_document(db, "videos", video_id)
    if video is None or not visible_to(viewer_id).matches(video):
        raise NotFoundError("Video not found")
    return video


def _user_summary() -> Pipeline:
    return Pipeline("users").project(USER_SUMMARY)


def _video_with_owner(owner_as: str = "ownerDetails", where: Optional[Predicate] = None) -> Pipeline:
    """Videos joined to their owner's public summary, optionally filtered by ``where``."""
    videos = Pipeline("videos")
    if where is not None:
        videos.match(where)
    return (
        videos
        .lookup("users", "owner", "id", owner_as, pipeline=_user_summary())
        .unwind(owner_as, preserve_empty=True)
    )


def sort_direction(sort_type: Optional[str]) -> bool:
    """Map ``asc``/``desc`` to a descending flag; missing means descending."""
    if sort_type is None:
        return True
    if sort_type not in SORT_TYPES:
        raise ValidationError("sortType must be 'asc' or 'desc'")
    return sort_type == "desc"


# ============================================
# Channels and subscriptions
# ============================================

def channel_profile(db: Session, username: str, viewer_id: Optional[UUID]) -> dict:
    """
    Public profile of a channel with its subscription counts.

    Args:
        db: Database session
        username: Channel handle
        viewer_id: Requesting user, used for ``isSubscribed``

    Returns:
        Channel document

    Raises:
        NotFoundError: If no user has this handle
    """
    channels = (
        Pipeline("users")
        .match(Eq("username", username.strip().lower()))
        .lookup("subscriptions", "id", "channel", "subscribers")
        .lookup("subscriptions", "id", "subscriber", "subscribedTo")
        .add_fields(
            subscriberCount=Size("subscribers"),
            subscribedToCount=Size("subscribedTo"),
            isSubscribed=IsMember(viewer_id, "subscribers.subscriber"),
        )
        .project({
            "id": 1,
            "fullName": 1,
            "username": 1,
            "email": 1,
            "avatar": 1,
            "coverImage": 1,
            "subscriberCount": 1,
            "subscribedToCount": 1,
            "isSubscribed": 1,
            "createdAt": 1,
        })
        .run(db)
    )
    if not channels:
        raise NotFoundError("Channel does not exist")
    return channels[0]


def channel_subscribers(db: Session, channel_id: UUID, viewer_id: Optional[UUID]) -> List[dict]:
    """Users subscribed to a channel, newest subscription first."""
    _require(db, "users", channel_id, "Channel")

    subscriber = (
        Pipeline("users")
        .lookup("subscriptions", "id", "channel", "subscribers")
        .add_fields(
            subscriberCount=Size("subscribers"),
            isSubscribed=IsMember(viewer_id, "subscribers.subscriber"),
        )
        .project({**USER_SUMMARY, "subscriberCount": 1, "isSubscribed": 1})
    )
    return (
        Pipeline("subscriptions")
        .match(Eq("channel", channel_id))
        .lookup("users", "subscriber", "id", "subscriber", pipeline=subscriber)
        .unwind("subscriber")
        .sort(("createdAt", True))
        .project({"subscriber": 1, "subscribedAt": "$createdAt"})
        .run(db)
    )


def subscribed_channels(db: Session, subscriber_id: UUID) -> List[dict]:
    """Channels a user subscribes to, newest subscription first."""
    _require(db, "users", subscriber_id, "Subscriber")

    channel = (
        Pipeline("users")
        .lookup("subscriptions", "id", "channel", "subscriptions")
        .add_fields(subscribedChannelCount=Size("subscriptions"))
        .project({**USER_SUMMARY, "subscribedChannelCount": 1})
    )
    return (
        Pipeline("subscriptions")
        .match(Eq("subscriber", subscriber_id))
        .lookup("users", "channel", "id", "channel", pipeline=channel)
        .unwind("channel")
        .sort(("createdAt", True))
        .project({"channel": 1, "subscribedAt": "$createdAt"})
        .run(db)
    )


# ============================================
# Videos
# ============================================

def video_feed(
    db: Session,
    page: int = 1,
    limit: int = 10,
    query: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
    user_id: Optional[UUID] = None,
    viewer_id: Optional[UUID] = None
) -> dict:
    """
    Paginated video feed.

    With both ``user_id`` and ``query`` the feed is the union of the user's
    videos and the videos whose title contains the query; with one of them
    it is filtered by that one alone. Unpublished videos are listed only
    when the viewer owns them.

    Args:
        db: Database session
        page: 1-based page number
        limit: Page size
        query: Case-insensitive title substring
        sort_by: One of VIDEO_SORT_FIELDS, default createdAt
        sort_type: ``asc`` or ``desc``, default desc
        user_id: Owner whose videos are included
        viewer_id: The requesting user

    Returns:
        Page dict with the video records
    """
    sort_by = sort_by or "createdAt"
    if sort_by not in VIDEO_SORT_FIELDS:
        raise ValidationError(f"sortBy must be one of: {', '.join(VIDEO_SORT_FIELDS)}")
    descending = sort_direction(sort_type)

    if user_id is not None:
        _require(db, "users", user_id, "User")

    query = query.strip() if query else None
    predicates = []
    if user_id is not None:
        predicates.append(Eq("owner", user_id))
    if query:
        predicates.append(Contains("title", query))

    pipeline = Pipeline("videos")
    if len(predicates) == 2:
        pipeline.match(Or(*predicates))
    elif predicates:
        pipeline.match(predicates[0])
    pipeline.match(visible_to(viewer_id))

    return (
        pipeline
        .lookup("users", "owner", "id", "ownerDetails", pipeline=_user_summary())
        .unwind("ownerDetails", preserve_empty=True)
        .sort((sort_by, descending))
        .project({**VIDEO_FIELDS, "updatedAt": 1, "ownerDetails": 1})
        .paginate(page, limit)
        .run(db)
    )


# ============================================
# Playlists
# ============================================

def playlist_detail(db: Session, playlist_id: UUID) -> dict:
    """
    A playlist with its published videos and owner.

    Totals count published videos only, matching the videos returned.
    """
    _require(db, "playlists", playlist_id, "Playlist")

    published = Eq("isPublished", True)
    playlists = (
        Pipeline("playlists")
        .match(Eq("id", playlist_id))
        .lookup("videos", "videos", "id", "videos")
        .lookup("users", "owner", "id", "owner")
        .add_fields(
            totalVideos=Size("videos", where=published),
            totalViews=Sum("videos", "views", where=published),
            owner=First("owner"),
        )
        .filter_array("videos", published)
        .project({
            "id": 1,
            "name": 1,
            "description": 1,
            "createdAt": 1,
            "updatedAt": 1,
            "totalVideos": 1,
            "totalViews": 1,
            "videos": VIDEO_FIELDS,
            "owner": {"id": 1, "username": 1, "fullName": 1, "avatar": 1},
        })
        .run(db)
    )
    return playlists[0]


def user_playlists(db: Session, user_id: UUID) -> List[dict]:
    """A user's playlists with video totals, most recently updated first."""
    _require(db, "users", user_id, "User")

    return (
        Pipeline("playlists")
        .match(Eq("owner", user_id))
        .lookup("videos", "videos", "id", "videos")
        .add_fields(totalVideos=Size("videos"), totalViews=Sum("videos", "views"))
        .sort(("updatedAt", True))
        .project({
            "id": 1,
            "name": 1,
            "description": 1,
            "totalVideos": 1,
            "totalViews": 1,
            "updatedAt": 1,
        })
        .run(db)
    )


# ============================================
# Tweets and comments
# ============================================

def tweet_feed(db: Session, user_id: UUID, viewer_id: Optional[UUID]) -> List[dict]:
    """A user's tweets, newest first, with like counts relative to the viewer."""
    _require(db, "users", user_id, "User")

    return (
        Pipeline("tweets")
        .match(Eq("owner", user_id))
        .lookup(
            "users", "owner", "id", "ownerDetails",
            pipeline=Pipeline("users").project({"id": 1, "username": 1, "avatar": 1}),
        )
        .lookup("likes", "id", "tweet", "likeDetails", pipeline=Pipeline("likes").project({"likedBy": 1}))
        .add_fields(
            likesCount=Size("likeDetails"),
            ownerDetails=First("ownerDetails"),
            isLiked=IsMember(viewer_id, "likeDetails.likedBy"),
        )
        .sort(("createdAt", True))
        .project({
            "id": 1,
            "content": 1,
            "ownerDetails": 1,
            "likesCount": 1,
            "isLiked": 1,
            "createdAt": 1,
        })
        .run(db)
    )


def comment_list(
    db: Session,
    video_id: UUID,
    viewer_id: Optional[UUID],
    page: int = 1,
    limit: int = 10
) -> dict:
    """Paginated comments on a video, newest first."""
    _require_video(db, video_id, viewer_id)

    return (
        Pipeline("comments")
        .match(Eq("video", video_id))
        .lookup("users", "owner", "id", "owners", pipeline=_user_summary())
        .lookup("likes", "id", "comment", "likes")
        .add_fields(
            likesCount=Size("likes"),
            owner=First("owners"),
            isLiked=IsMember(viewer_id, "likes.likedBy"),
        )
        .sort(("createdAt", True))
        .project({
            "id": 1,
            "content": 1,
            "video": 1,
            "owner": 1,
            "likesCount": 1,
            "isLiked": 1,
            "createdAt": 1,
            "updatedAt": 1,
        })
        .paginate(page, limit)
        .run(db)
    )


# ============================================
# Likes and history
# ============================================

LIKED_VIDEO_FIELDS = {
    **VIDEO_FIELDS,
    "ownerDetails": {"username": 1, "fullName": 1, "avatar": 1},
}


def video_likers(db: Session, video_id: UUID, viewer_id: Optional[UUID]) -> List[dict]:
    """Likes on one video with the liker and the video, newest first."""
    _require_video(db, video_id, viewer_id)

    return (
        Pipeline("likes")
        .match(Eq("video", video_id))
        .lookup("videos", "video", "id", "likedVideo", pipeline=_video_with_owner())
        .lookup("users", "likedBy", "id", "likedBy", pipeline=_user_summary())
        .unwind("likedVideo")
        .unwind("likedBy")
        .sort(("createdAt", True))
        .project({
            "likedBy": USER_SUMMARY,
            "likedAt": "$createdAt",
            "likedVideo": LIKED_VIDEO_FIELDS,
        })
        .run(db)
    )


def liked_videos(db: Session, viewer_id: UUID) -> List[dict]:
    """Videos the viewer has liked, most recent like first."""
    return (
        Pipeline("likes")
        .match(And(Eq("likedBy", viewer_id), IsSet("video")))
        .lookup("videos", "video", "id", "likedVideo", pipeline=_video_with_owner(where=visible_to(viewer_id)))
        .unwind("likedVideo")
        .sort(("createdAt", True))
        .project({"likedAt": "$createdAt", "likedVideo": LIKED_VIDEO_FIELDS})
        .run(db)
    )


def watch_history(db: Session, viewer_id: UUID, page: int = 1, limit: int = 10) -> dict:
    """Videos the viewer watched, most recent first."""
    video = _video_with_owner("owner").project({
        **VIDEO_FIELDS,
        "owner": USER_SUMMARY,
    })
    return (
        Pipeline("watch_history")
        .match(Eq("user", viewer_id))
        .lookup("videos", "video", "id", "video", pipeline=video)
        .unwind("video", preserve_empty=True)
        .sort(("watchedAt", True))
        .project({"watchedAt": 1, "video": 1})
        .paginate(page, limit)
        .run(db)
    )
