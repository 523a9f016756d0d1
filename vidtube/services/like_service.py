"""Like toggles."""

from sqlalchemy.orm import Session

from vidtube.models import Comment, Like, Tweet, User, Video
from vidtube.services.access import get_or_404, get_visible_video, toggle_membership
from vidtube.utils.validators import parse_id

# path label -> (target model, Like column)
TARGETS = {
    "video": (Video, "video_id"),
    "comment": (Comment, "comment_id"),
    "tweet": (Tweet, "tweet_id"),
}


class LikeService:

    @staticmethod
    def toggle_like(db: Session, user: User, target: str, target_id: str) -> dict:
        """
        Like the target if the user has not liked it yet, otherwise unlike it.

        Args:
            db: Database session
            user: The liker
            target: ``video``, ``comment`` or ``tweet``
            target_id: Raw id from the path

        Returns:
            ``{"isLiked": bool}`` after the toggle
        """
        model, column = TARGETS[target]
        target_uuid = parse_id(target_id, target)
        if model is Video:
            get_visible_video(db, target_uuid, user.id)
        else:
            get_or_404(db, model, target_uuid, target.capitalize())

        is_liked = toggle_membership(db, Like, liked_by_id=user.id, **{column: target_uuid})
        return {"isLiked": is_liked}
