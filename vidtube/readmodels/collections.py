"""
Collections: the normalized stores as seen by the read-model composer.

Each collection maps document keys (camelCase, as exposed by the API) onto
columns of a SQLAlchemy model and knows how to load matching rows as plain
documents. Array-valued keys (a playlist's videos) are filled from their
association table in one extra query per load.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from vidtube.models import (
    Comment,
    Like,
    Playlist,
    PlaylistVideo,
    Subscription,
    Tweet,
    User,
    Video,
    WatchHistory,
)
from vidtube.readmodels.expressions import Eq


class PipelineError(Exception):
    """A pipeline was built against a field or collection that does not exist."""


@dataclass(frozen=True)
class ArrayField:
    """An array of references stored in an association table."""
    model: Any
    parent_key: str
    value_key: str
    order_key: Optional[str] = None


class Collection:
    """A named store the composer can match, join and load from."""

    def __init__(self, name: str, model: Any, fields: Dict[str, str], arrays: Optional[Dict[str, ArrayField]] = None):
        self.name = name
        self.model = model
        self.fields = fields
        self.arrays = arrays or {}

    def has_column(self, key: str) -> bool:
        return key in self.fields

    def column(self, key: str):
        """SQLAlchemy column behind a document key."""
        attribute = self.fields.get(key)
        if attribute is None:
            raise PipelineError(f"Collection '{self.name}' has no column for '{key}'")
        return getattr(self.model, attribute)

    def to_document(self, row: Any) -> dict:
        """Scalar fields of one ORM row as a document; arrays are left out."""
        return {key: getattr(row, attribute) for key, attribute in self.fields.items()}

    def _filtered(self, statement, where):
        if where is not None:
            statement = statement.where(where.to_clause(self))
        return statement

    def count(self, db: Session, where=None) -> int:
        statement = self._filtered(select(func.count()).select_from(self.model), where)
        return db.execute(statement).scalar_one()

    def load(
        self,
        db: Session,
        where=None,
        order_by: Sequence[Tuple[str, bool]] = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[dict]:
        """
        Load matching rows as documents.

        Args:
            db: Database session
            where: Predicate compiled into the WHERE clause
            order_by: (key, descending) pairs
            offset: Rows to skip
            limit: Maximum rows to return

        Returns:
            List of documents
        """
        statement = self._filtered(select(self.model), where)
        for key, descending in order_by:
            column = self.column(key)
            statement = statement.order_by(column.desc() if descending else column.asc())
        if order_by:
            # Deterministic pages when sort keys tie
            statement = statement.order_by(self.model.id.asc())
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)

        rows = db.execute(statement).scalars().all()
        documents = [self.to_document(row) for row in rows]
        self._attach_arrays(db, documents)
        return documents

    def _attach_arrays(self, db: Session, documents: List[dict]) -> None:
        if not documents:
            return
        ids = [doc["id"] for doc in documents]
        for key, array in self.arrays.items():
            parent = getattr(array.model, array.parent_key)
            value = getattr(array.model, array.value_key)
            statement = select(parent, value).where(parent.in_(ids))
            if array.order_key:
                statement = statement.order_by(getattr(array.model, array.order_key))
            grouped: Dict[Any, List[Any]] = {}
            for parent_id, value_id in db.execute(statement):
                grouped.setdefault(parent_id, []).append(value_id)
            for doc in documents:
                doc[key] = grouped.get(doc["id"], [])


COLLECTIONS: Dict[str, Collection] = {
    "users": Collection("users", User, {
        "id": "id",
        "username": "username",
        "email": "email",
        "fullName": "full_name",
        "avatar": "avatar",
        "coverImage": "cover_image",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }),
    "videos": Collection("videos", Video, {
        "id": "id",
        "owner": "owner_id",
        "videoFile": "video_file",
        "thumbnail": "thumbnail",
        "title": "title",
        "description": "description",
        "duration": "duration",
        "views": "views",
        "isPublished": "is_published",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }),
    "comments": Collection("comments", Comment, {
        "id": "id",
        "content": "content",
        "video": "video_id",
        "owner": "owner_id",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }),
    "tweets": Collection("tweets", Tweet, {
        "id": "id",
        "content": "content",
        "owner": "owner_id",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }),
    "playlists": Collection(
        "playlists",
        Playlist,
        {
            "id": "id",
            "name": "name",
            "description": "description",
            "owner": "owner_id",
            "createdAt": "created_at",
            "updatedAt": "updated_at",
        },
        arrays={"videos": ArrayField(PlaylistVideo, "playlist_id", "video_id", "position")}
    ),
    "likes": Collection("likes", Like, {
        "id": "id",
        "video": "video_id",
        "comment": "comment_id",
        "tweet": "tweet_id",
        "likedBy": "liked_by_id",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }),
    "subscriptions": Collection("subscriptions", Subscription, {
        "id": "id",
        "subscriber": "subscriber_id",
        "channel": "channel_id",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }),
    "watch_history": Collection("watch_history", WatchHistory, {
        "id": "id",
        "user": "user_id",
        "video": "video_id",
        "watchedAt": "watched_at",
    }),
}


def get_collection(name: str) -> Collection:
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise PipelineError(f"Unknown collection '{name}'")


def load_document(db: Session, name: str, document_id: Any) -> Optional[dict]:
    """Single document by id, arrays included."""
    collection = get_collection(name)
    documents = collection.load(db, where=Eq("id", document_id))
    return documents[0] if documents else None

