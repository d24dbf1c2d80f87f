"""In-memory document store.

Holds documents in plain dicts keyed by collection and document id and
enforces the same limits as the hosted store. Every operation yields to
the event loop once, so callers see a real suspension point.

Used directly in tests (call recording, failure injection) and as the
base of the JSON file store.
"""

import asyncio
import copy
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import StoreError
from ..types import Post, Profile, WriteOp
from ._base import (
    DEFAULT_LOOKUP_BATCH_LIMIT,
    DEFAULT_WRITE_BATCH_LIMIT,
    POSTS,
    USERS,
    ProfileStore,
)
from ._codec import post_from_doc, post_to_doc, profile_from_doc, profile_to_doc

logger = logging.getLogger(__name__)

Documents = Dict[str, Dict[str, Dict[str, Any]]]


class MemoryProfileStore(ProfileStore):
    """Dict-backed ProfileStore."""

    def __init__(
        self,
        lookup_batch_limit: int = DEFAULT_LOOKUP_BATCH_LIMIT,
        write_batch_limit: int = DEFAULT_WRITE_BATCH_LIMIT,
        fail_writes_after: Optional[int] = None,
    ) -> None:
        super().__init__(lookup_batch_limit, write_batch_limit)
        self._docs: Documents = {USERS: {}, POSTS: {}}
        # Number of batch writes to accept before rejecting every further one
        self.fail_writes_after = fail_writes_after

        self.point_lookups: List[str] = []
        self.lookup_calls: List[List[str]] = []
        self.write_calls: List[int] = []

    # === Seeding / inspection ===

    def put_profile(self, profile: Profile) -> None:
        self._documents()[USERS][profile.uid] = profile_to_doc(profile)

    def put_post(self, post: Post) -> None:
        self._documents()[POSTS][post.id] = post_to_doc(post)

    def get_post(self, post_id: str) -> Optional[Post]:
        """Read a post straight from the documents, bypassing any cache."""
        doc = self._documents()[POSTS].get(post_id)
        return post_from_doc(post_id, doc) if doc is not None else None

    def reset_calls(self) -> None:
        self.point_lookups.clear()
        self.lookup_calls.clear()
        self.write_calls.clear()

    def _documents(self) -> Documents:
        return self._docs

    def _apply(self, mutate: Callable[[Documents], None]) -> None:
        """Run `mutate` against the documents. Subclasses persist the result."""
        mutate(self._documents())

    # === ProfileStore ===

    async def find_by_id(self, uid: str) -> Optional[Profile]:
        await asyncio.sleep(0)
        self.point_lookups.append(uid)
        doc = self._documents()[USERS].get(uid)
        return profile_from_doc(doc) if doc is not None else None

    async def find_many_by_ids(self, uids: Sequence[str]) -> List[Profile]:
        if len(uids) > self.lookup_batch_limit:
            raise StoreError(
                f"'in' lookup accepts at most {self.lookup_batch_limit} ids, got {len(uids)}"
            )
        await asyncio.sleep(0)
        self.lookup_calls.append(list(uids))
        users = self._documents()[USERS]
        return [profile_from_doc(users[uid]) for uid in dict.fromkeys(uids) if uid in users]

    async def find_by_owner(self, owner_id: str) -> List[Post]:
        await asyncio.sleep(0)
        return [
            post_from_doc(post_id, doc)
            for post_id, doc in self._documents()[POSTS].items()
            if doc.get("authorId") == owner_id
        ]

    async def find_commented_by(self, uid: str) -> List[Post]:
        await asyncio.sleep(0)
        return [
            post_from_doc(post_id, doc)
            for post_id, doc in self._documents()[POSTS].items()
            if any(c.get("authorId") == uid for c in doc.get("comments") or ())
        ]

    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        if len(ops) > self.write_batch_limit:
            raise StoreError(
                f"Batch accepts at most {self.write_batch_limit} operations, got {len(ops)}"
            )
        await asyncio.sleep(0)
        if self.fail_writes_after is not None and len(self.write_calls) >= self.fail_writes_after:
            raise StoreError("Batch write rejected by store")

        docs = self._documents()
        # Validate everything first so a rejected batch applies nothing
        for op in ops:
            if op.collection not in docs:
                raise StoreError(f"Unknown collection: {op.collection}")
            if op.doc_id not in docs[op.collection]:
                raise StoreError(f"No document to update: {op.collection}/{op.doc_id}")

        def mutate(target: Documents) -> None:
            for op in ops:
                target[op.collection][op.doc_id].update(copy.deepcopy(op.fields))

        self._apply(mutate)
        self.write_calls.append(len(ops))
        logger.debug(f"Committed batch of {len(ops)} operations")

    async def update_profile(self, uid: str, fields: Dict[str, Any]) -> None:
        await asyncio.sleep(0)
        users = self._documents()[USERS]
        if uid not in users:
            raise StoreError(f"No profile to update: {uid}")
        self._apply(lambda target: target[USERS][uid].update(copy.deepcopy(fields)))
