"""Read-time refresh of denormalized author fields."""

import dataclasses
import logging
from typing import Dict, Iterable, List

from .cache import ProfileCache
from .types import Comment, Post, Profile

logger = logging.getLogger(__name__)


class ContentEnricher:
    """
    Overlays current profile data onto posts and their comments.

    Author names and avatars stored on posts may lag behind a profile edit
    until repair finishes. enrich() masks that lag using the cache and
    never writes to the store.
    """

    def __init__(self, cache: ProfileCache) -> None:
        self._cache = cache

    async def enrich(self, posts: Iterable[Post]) -> List[Post]:
        """
        Return copies of `posts` with author fields taken from current profiles.

        All distinct authors of posts and nested comments are resolved in a
        single get_many call. Records whose author has no profile keep their
        persisted fields. Input posts are not modified.
        """
        posts = list(posts)
        if not posts:
            return []

        author_ids: Dict[str, None] = {}
        for post in posts:
            author_ids[post.author_id] = None
            for comment in post.comments:
                author_ids[comment.author_id] = None

        profiles = await self._cache.get_many(author_ids)
        logger.debug(f"Enriching {len(posts)} posts with {len(profiles)}/{len(author_ids)} resolved authors")
        return [self._enrich_post(post, profiles) for post in posts]

    def _enrich_post(self, post: Post, profiles: Dict[str, Profile]) -> Post:
        comments = tuple(self._enrich_comment(c, profiles) for c in post.comments)
        author = profiles.get(post.author_id)
        if author is None:
            return dataclasses.replace(post, comments=comments)
        return dataclasses.replace(
            post,
            author_name=author.display_name,
            author_photo_url=author.photo_url,
            comments=comments,
        )

    @staticmethod
    def _enrich_comment(comment: Comment, profiles: Dict[str, Profile]) -> Comment:
        author = profiles.get(comment.author_id)
        if author is None:
            return comment
        return dataclasses.replace(
            comment,
            author_name=author.display_name,
            author_photo_url=author.photo_url,
        )
