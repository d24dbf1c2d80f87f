"""Profile store adapters.

Usage:
    from profile_sync.store import get_store

    store = get_store("json", path="data/store.json")
    profile = await store.find_by_id("u1")
"""

from typing import Any

from ._base import POSTS, USERS, ProfileStore
from ._codec import (
    AUTHOR_NAME,
    AUTHOR_PHOTO_URL,
    COMMENTS,
    UPDATED_AT,
    comments_to_docs,
    parse_timestamp,
)
from ._json import JsonFileProfileStore
from ._memory import MemoryProfileStore

__all__ = [
    "AUTHOR_NAME",
    "AUTHOR_PHOTO_URL",
    "COMMENTS",
    "UPDATED_AT",
    "comments_to_docs",
    "POSTS",
    "USERS",
    "ProfileStore",
    "MemoryProfileStore",
    "JsonFileProfileStore",
    "parse_timestamp",
    "get_store",
]


def get_store(backend: str, **kwargs: Any) -> ProfileStore:
    """Create a store for the given backend ("memory" or "json").

    Raises:
        ValueError: For unknown backends
    """
    if backend == "memory":
        return MemoryProfileStore(**kwargs)
    if backend == "json":
        return JsonFileProfileStore(**kwargs)
    raise ValueError(f"Unknown store backend: {backend}")
