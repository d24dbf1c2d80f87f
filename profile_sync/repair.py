"""
Reference repair.

After a profile's display name or avatar changes, every post and comment
that copied the old values is rewritten in the store. Writes go out in
atomic batches no larger than the store's limit, strictly one after the
other, in the order they were staged: a post's own update always precedes
its comment-list update.

repair() raises RepairError on the first rejected batch; batches already
committed stay committed. Running it detached and reporting the failure is
the caller's job (see ProfileSync.on_profile_updated).
"""

import dataclasses
import logging
import time
from typing import Callable, List, Optional, Set

from .errors import RepairError, StoreError
from .store import (
    AUTHOR_NAME,
    AUTHOR_PHOTO_URL,
    COMMENTS,
    POSTS,
    UPDATED_AT,
    ProfileStore,
    comments_to_docs,
)
from .types import Post, RepairResult, WriteOp, utc_now
from .utils.metrics import SyncMetrics

logger = logging.getLogger(__name__)


class _BatchWriter:
    """Stages WriteOps and flushes them whenever the batch limit is reached."""

    def __init__(self, store: ProfileStore, result: RepairResult) -> None:
        self._store = store
        self._result = result
        self._staged: List[WriteOp] = []

    async def add(self, op: WriteOp) -> None:
        self._staged.append(op)
        if len(self._staged) >= self._store.write_batch_limit:
            await self.flush()

    async def flush(self) -> None:
        if not self._staged:
            return
        ops, self._staged = self._staged, []
        try:
            await self._store.batch_write(ops)
        except StoreError as exc:
            raise RepairError(
                f"Batch {self._result.batches + 1} of repair for {self._result.uid} failed: {exc}",
                self._result,
            ) from exc
        self._result.batches += 1
        self._result.operations += len(ops)
        logger.debug(f"Flushed repair batch of {len(ops)} operations for {self._result.uid}")


class ReferenceRepairer:
    """
    Rewrites denormalized author fields of one user across all content.

    Usage:
        repairer = ReferenceRepairer(store)
        result = await repairer.repair("u1", "New Name", "https://img/new.png")
    """

    def __init__(
        self,
        store: ProfileStore,
        metrics: Optional[SyncMetrics] = None,
        now: Callable = utc_now,
    ) -> None:
        self._store = store
        self._metrics = metrics
        self._now = now

    async def repair(self, uid: str, display_name: str, photo_url: str) -> RepairResult:
        """
        Propagate new display values of `uid` into posts and comments.

        Args:
            uid: Author whose copies are rewritten
            display_name: New display name
            photo_url: New avatar reference

        Returns:
            RepairResult with counts of matched posts, rewritten comments,
            operations and batches

        Raises:
            RepairError: If a query or batch write fails
        """
        started = time.monotonic()
        result = RepairResult(uid=uid)
        writer = _BatchWriter(self._store, result)

        try:
            try:
                owned = await self._store.find_by_owner(uid)
                commented = await self._store.find_commented_by(uid)
            except StoreError as exc:
                raise RepairError(f"Querying content of {uid} failed: {exc}", result) from exc

            result.posts_matched = len(owned)
            updated_at = self._now()
            covered: Set[str] = set()

            for post in owned:
                covered.add(post.id)
                await writer.add(WriteOp(POSTS, post.id, {
                    AUTHOR_NAME: display_name,
                    AUTHOR_PHOTO_URL: photo_url,
                    UPDATED_AT: updated_at,
                }))
                await self._stage_comments(writer, post, uid, display_name, photo_url, result)

            # Comments by this user on other people's posts
            for post in commented:
                if post.id not in covered:
                    covered.add(post.id)
                    await self._stage_comments(writer, post, uid, display_name, photo_url, result)

            await writer.flush()
        except RepairError:
            result.duration_ms = int((time.monotonic() - started) * 1000)
            if self._metrics:
                self._metrics.record_repair(False, result.duration_ms, result.batches)
            raise

        result.duration_ms = int((time.monotonic() - started) * 1000)
        if self._metrics:
            self._metrics.record_repair(True, result.duration_ms, result.batches)
        logger.info(
            f"Repaired references of {uid}: {result.posts_matched} posts, "
            f"{result.comments_rewritten} comments in {result.batches} batches "
            f"({result.duration_ms}ms)"
        )
        return result

    @staticmethod
    async def _stage_comments(
        writer: _BatchWriter,
        post: Post,
        uid: str,
        display_name: str,
        photo_url: str,
        result: RepairResult,
    ) -> None:
        if uid not in post.comment_authors():
            return

        rewritten = 0
        comments = []
        for comment in post.comments:
            if comment.author_id == uid:
                comment = dataclasses.replace(
                    comment, author_name=display_name, author_photo_url=photo_url
                )
                rewritten += 1
            comments.append(comment)

        result.comments_rewritten += rewritten
        await writer.add(WriteOp(POSTS, post.id, {COMMENTS: comments_to_docs(comments)}))
