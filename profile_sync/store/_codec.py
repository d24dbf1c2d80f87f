"""Document codec for the store boundary.

Store documents use the camelCase field names of the hosted document
database:

    users/<uid>:  uid, email, displayName, photoURL, bio, createdAt, updatedAt
    posts/<id>:   authorId, authorName, authorPhotoURL, content, imageURL,
                  likes[], comments[], createdAt, updatedAt
    comment:      id, postId, authorId, authorName, authorPhotoURL,
                  content, createdAt

Timestamps arrive in whatever shape the store produced them (native
datetime, ISO string, epoch number, Firestore-style timestamp objects or
their JSON exports). parse_timestamp() is the only place that knows about
those shapes.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from ..types import Comment, Post, Profile, utc_now

logger = logging.getLogger(__name__)

# Numeric epochs above this are milliseconds (year 5138 in seconds).
_EPOCH_MS_THRESHOLD = 1e11

AUTHOR_NAME = "authorName"
AUTHOR_PHOTO_URL = "authorPhotoURL"
COMMENTS = "comments"
UPDATED_AT = "updatedAt"


def parse_timestamp(value: Any) -> datetime:
    """Normalize a store-native timestamp to an aware UTC datetime.

    Missing or unparseable values fall back to the current time.
    """
    if value is None:
        return utc_now()

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    # Firestore Timestamp (to_datetime) / protobuf Timestamp (ToDatetime)
    for attr in ("to_datetime", "ToDatetime"):
        converter = getattr(value, attr, None)
        if callable(converter):
            return parse_timestamp(converter())

    if isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        if seconds is not None:
            nanos = value.get("nanoseconds", value.get("_nanoseconds", 0)) or 0
            try:
                return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)
            except (ValueError, OverflowError, OSError, TypeError):
                pass

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
        # NaN, infinities and out-of-range epochs
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            pass

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return parse_timestamp(datetime.fromisoformat(text))
        except ValueError:
            pass

    logger.warning(f"Unrecognized timestamp {value!r}, using current time")
    return utc_now()


def encode_value(value: Any) -> Any:
    """JSON encoder hook: datetimes become ISO-8601 strings."""
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def profile_from_doc(doc: Mapping[str, Any]) -> Profile:
    return Profile(
        uid=doc["uid"],
        display_name=doc.get("displayName") or "",
        photo_url=doc.get("photoURL") or "",
        email=doc.get("email") or "",
        bio=doc.get("bio"),
        created_at=parse_timestamp(doc.get("createdAt")),
        updated_at=parse_timestamp(doc.get("updatedAt")),
    )


def profile_to_doc(profile: Profile) -> Dict[str, Any]:
    return {
        "uid": profile.uid,
        "email": profile.email,
        "displayName": profile.display_name,
        "photoURL": profile.photo_url,
        "bio": profile.bio,
        "createdAt": profile.created_at,
        "updatedAt": profile.updated_at,
    }


def comment_from_doc(doc: Mapping[str, Any], post_id: str = "") -> Comment:
    return Comment(
        id=doc.get("id", ""),
        post_id=doc.get("postId") or post_id,
        author_id=doc["authorId"],
        author_name=doc.get(AUTHOR_NAME) or "",
        author_photo_url=doc.get(AUTHOR_PHOTO_URL) or "",
        content=doc.get("content", ""),
        created_at=parse_timestamp(doc.get("createdAt")),
    )


def comment_to_doc(comment: Comment) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "authorId": comment.author_id,
        AUTHOR_NAME: comment.author_name,
        AUTHOR_PHOTO_URL: comment.author_photo_url,
        "content": comment.content,
        "createdAt": comment.created_at,
    }


def post_from_doc(post_id: str, doc: Mapping[str, Any]) -> Post:
    return Post(
        id=post_id,
        author_id=doc["authorId"],
        author_name=doc.get(AUTHOR_NAME) or "",
        author_photo_url=doc.get(AUTHOR_PHOTO_URL) or "",
        content=doc.get("content", ""),
        image_url=doc.get("imageURL"),
        likes=tuple(doc.get("likes") or ()),
        comments=tuple(comment_from_doc(c, post_id) for c in doc.get(COMMENTS) or ()),
        created_at=parse_timestamp(doc.get("createdAt")),
        updated_at=parse_timestamp(doc.get(UPDATED_AT)),
    )


def post_to_doc(post: Post) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "authorId": post.author_id,
        AUTHOR_NAME: post.author_name,
        AUTHOR_PHOTO_URL: post.author_photo_url,
        "content": post.content,
        "likes": list(post.likes),
        COMMENTS: comments_to_docs(post.comments),
        "createdAt": post.created_at,
        UPDATED_AT: post.updated_at,
    }
    # Only present when the post has an image
    if post.image_url:
        doc["imageURL"] = post.image_url
    return doc


def comments_to_docs(comments: Any) -> List[Dict[str, Any]]:
    return [comment_to_doc(c) for c in comments]
