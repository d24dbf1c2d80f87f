"""Shared fixtures for Profile Sync tests."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Sequence

import pytest

from profile_sync.store import MemoryProfileStore
from profile_sync.types import Comment, Post, Profile

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_profile(uid: str, name: str = "", photo: str = "") -> Profile:
    return Profile(
        uid=uid,
        display_name=name or f"User {uid}",
        photo_url=photo or f"https://img.example/{uid}.png",
        email=f"{uid}@example.com",
        created_at=T0,
        updated_at=T0,
    )


def make_comment(comment_id: str, post_id: str, author: Profile, content: str = "nice") -> Comment:
    return Comment(
        id=comment_id,
        post_id=post_id,
        author_id=author.uid,
        author_name=author.display_name,
        author_photo_url=author.photo_url,
        content=content,
        created_at=T0,
    )


def make_post(
    post_id: str,
    author: Profile,
    comments: Sequence[Comment] = (),
    content: str = "",
    minutes: int = 0,
) -> Post:
    return Post(
        id=post_id,
        author_id=author.uid,
        author_name=author.display_name,
        author_photo_url=author.photo_url,
        content=content or f"post {post_id}",
        likes=("someone",),
        comments=tuple(comments),
        created_at=T0 + timedelta(minutes=minutes),
        updated_at=T0 + timedelta(minutes=minutes),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryProfileStore()


@pytest.fixture
def seeded_store():
    """
    Store with three users and three posts:

        p1 by alice, commented by bob
        p2 by alice
        p3 by bob, commented by alice (c1) and carol (c2)
    """
    store = MemoryProfileStore()
    alice, bob, carol = make_profile("alice"), make_profile("bob"), make_profile("carol")
    for profile in (alice, bob, carol):
        store.put_profile(profile)

    store.put_post(make_post("p1", alice, [make_comment("c0", "p1", bob)], minutes=1))
    store.put_post(make_post("p2", alice, minutes=2))
    store.put_post(make_post("p3", bob, [
        make_comment("c1", "p3", alice),
        make_comment("c2", "p3", carol),
    ], minutes=3))
    return store


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back after tests that call setup_logging()."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
