"""Comment mutations."""

from typing import Optional

from sqlalchemy.orm import Session

from vidtube.models import Comment, User
from vidtube.readmodels.collections import get_collection
from vidtube.services.access import get_owned, get_visible_video
from vidtube.utils.validators import clean_text, parse_id, require_fields


class CommentService:

    @staticmethod
    def to_document(comment: Comment) -> dict:
        return get_collection("comments").to_document(comment)

    @staticmethod
    def add_comment(db: Session, user: User, video_id: str, content: Optional[str]) -> dict:
        video_uuid = parse_id(video_id, "video")
        require_fields(message="Content is required", content=content)
        get_visible_video(db, video_uuid, user.id)

        comment = Comment(content=clean_text(content), video_id=video_uuid, owner_id=user.id)
        db.add(comment)
        db.commit()
        db.refresh(comment)
        return CommentService.to_document(comment)

    @staticmethod
    def update_comment(db: Session, user: User, comment_id: str, content: Optional[str]) -> dict:
        """
        Raises:
            ForbiddenError: If the requester did not write the comment
        """
        comment_uuid = parse_id(comment_id, "comment")
        require_fields(message="Content is required", content=content)
        comment = get_owned(db, Comment, comment_uuid, user.id, "Comment")

        comment.content = clean_text(content)
        db.commit()
        db.refresh(comment)
        return CommentService.to_document(comment)

    @staticmethod
    def delete_comment(db: Session, user: User, comment_id: str) -> None:
        comment_uuid = parse_id(comment_id, "comment")
        comment = get_owned(db, Comment, comment_uuid, user.id, "Comment")

        db.delete(comment)
        db.commit()
