"""
Profile Sync type definitions.

Typed value objects for profiles and the content records that carry
denormalized copies of profile fields. All timestamps are timezone-aware
UTC datetimes; conversion from store-native representations happens in
the store codec.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Profile:
    """A user profile, the source of truth for author display fields."""
    uid: str
    display_name: str
    photo_url: str
    email: str = ""
    bio: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Comment:
    """A comment embedded in a post, with denormalized author fields."""
    id: str
    post_id: str
    author_id: str
    author_name: str
    author_photo_url: str
    content: str = ""
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Post:
    """A post with denormalized author fields and its ordered comments."""
    id: str
    author_id: str
    author_name: str
    author_photo_url: str
    content: str = ""
    image_url: Optional[str] = None
    likes: Tuple[str, ...] = ()
    comments: Tuple[Comment, ...] = ()
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def comment_authors(self) -> set:
        """Distinct author ids of the nested comments."""
        return {c.author_id for c in self.comments}


@dataclass(frozen=True)
class WriteOp:
    """A single staged document update in an atomic batch."""
    collection: str
    doc_id: str
    fields: Dict[str, Any]


@dataclass
class RepairResult:
    """Outcome of a reference repair run."""
    uid: str
    posts_matched: int = 0
    comments_rewritten: int = 0
    operations: int = 0
    batches: int = 0
    duration_ms: int = 0
