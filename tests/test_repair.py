"""Tests for profile_sync.repair module."""

import json
from datetime import datetime, timezone
from typing import List, Sequence

import pytest

from profile_sync.errors import RepairError, StoreError
from profile_sync.repair import ReferenceRepairer
from profile_sync.store import POSTS, USERS, JsonFileProfileStore, MemoryProfileStore
from profile_sync.types import WriteOp
from profile_sync.utils.metrics import SyncMetrics

from .conftest import T0, make_comment, make_post, make_profile

REPAIRED_AT = datetime(2025, 7, 1, tzinfo=timezone.utc)


class RecordingStore(MemoryProfileStore):
    """Memory store that keeps every committed batch."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.batches: List[List[WriteOp]] = []

    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        await super().batch_write(ops)
        self.batches.append(list(ops))


def repairer_for(store, **kwargs) -> ReferenceRepairer:
    return ReferenceRepairer(store, now=lambda: REPAIRED_AT, **kwargs)


def seed_posts(store, count: int, author_uid: str = "alice") -> None:
    author = make_profile(author_uid)
    store.put_profile(author)
    for i in range(count):
        store.put_post(make_post(f"p{i}", author))


class TestRepair:
    """Tests for ReferenceRepairer.repair()."""

    @pytest.mark.asyncio
    async def test_rewrites_every_copy(self, seeded_store):
        """Owned posts and alice's comments everywhere carry the new values."""
        result = await repairer_for(seeded_store).repair("alice", "Alice B.", "new.png")

        for post_id in ("p1", "p2"):
            post = seeded_store.get_post(post_id)
            assert post.author_name == "Alice B."
            assert post.author_photo_url == "new.png"
            assert post.updated_at == REPAIRED_AT

        c1 = seeded_store.get_post("p3").comments[0]
        assert c1.author_id == "alice"
        assert c1.author_name == "Alice B."
        assert c1.author_photo_url == "new.png"

        assert result.posts_matched == 2
        assert result.comments_rewritten == 1

    @pytest.mark.asyncio
    async def test_leaves_other_authors_alone(self, seeded_store):
        """Fields of other users and non-author fields are untouched."""
        before_p3 = seeded_store.get_post("p3")
        await repairer_for(seeded_store).repair("alice", "Alice B.", "new.png")
        p3 = seeded_store.get_post("p3")

        assert p3.author_name == "User bob"
        assert p3.updated_at == before_p3.updated_at
        assert p3.comments[1] == before_p3.comments[1]
        assert p3.comments[0].content == before_p3.comments[0].content
        assert p3.comments[0].created_at == before_p3.comments[0].created_at

        # bob's comment on alice's post keeps bob's fields
        p1 = seeded_store.get_post("p1")
        assert p1.comments[0].author_name == "User bob"
        assert p1.content == "post p1"
        assert p1.likes == ("someone",)
        assert p1.created_at == T0.replace(minute=1)

    @pytest.mark.asyncio
    async def test_comment_order_preserved(self, seeded_store):
        await repairer_for(seeded_store).repair("alice", "Alice B.", "new.png")
        assert [c.id for c in seeded_store.get_post("p3").comments] == ["c1", "c2"]

    @pytest.mark.asyncio
    async def test_own_comments_on_own_post(self):
        """A post's update precedes its comment-list update."""
        store = RecordingStore()
        alice = make_profile("alice")
        store.put_profile(alice)
        store.put_post(make_post("p1", alice, [make_comment("c1", "p1", alice)]))

        result = await repairer_for(store).repair("alice", "A", "a.png")

        ops = store.batches[0]
        assert [op.doc_id for op in ops] == ["p1", "p1"]
        assert "authorName" in ops[0].fields
        assert "comments" in ops[1].fields
        assert "updatedAt" not in ops[1].fields
        assert store.get_post("p1").comments[0].author_name == "A"
        assert store.get_post("p1").author_name == "A"
        assert result.operations == 2

    @pytest.mark.asyncio
    async def test_no_content_writes_nothing(self):
        store = MemoryProfileStore()
        store.put_profile(make_profile("loner"))

        result = await repairer_for(store).repair("loner", "L", "l.png")

        assert store.write_calls == []
        assert result.posts_matched == 0
        assert result.batches == 0
        assert result.operations == 0

    @pytest.mark.asyncio
    async def test_idempotent(self, seeded_store):
        """Repairing twice with the same values yields the same documents."""
        repairer = repairer_for(seeded_store)
        await repairer.repair("alice", "Alice B.", "new.png")
        first = [seeded_store.get_post(p) for p in ("p1", "p2", "p3")]

        await repairer.repair("alice", "Alice B.", "new.png")
        assert [seeded_store.get_post(p) for p in ("p1", "p2", "p3")] == first


class TestBatching:
    """Tests for batch sizing and sequencing."""

    @pytest.mark.asyncio
    async def test_batches_respect_write_limit(self):
        """7 operations with a limit of 3 go out as 3, 3, 1."""
        store = MemoryProfileStore(write_batch_limit=3)
        seed_posts(store, 7)

        result = await repairer_for(store).repair("alice", "A", "a.png")

        assert store.write_calls == [3, 3, 1]
        assert result.batches == 3
        assert result.operations == 7
        assert all(store.get_post(f"p{i}").author_name == "A" for i in range(7))

    @pytest.mark.asyncio
    async def test_exact_multiple_has_no_empty_batch(self):
        store = MemoryProfileStore(write_batch_limit=2)
        seed_posts(store, 4)

        await repairer_for(store).repair("alice", "A", "a.png")
        assert store.write_calls == [2, 2]

    @pytest.mark.asyncio
    async def test_default_limit_is_500(self):
        store = MemoryProfileStore()
        seed_posts(store, 501)

        result = await repairer_for(store).repair("alice", "A", "a.png")
        assert store.write_calls == [500, 1]
        assert result.posts_matched == 501


class TestFailure:
    """Tests for failed repairs."""

    @pytest.mark.asyncio
    async def test_failed_batch_raises_with_partial_result(self):
        """Earlier batches stay committed; later ones are never sent."""
        store = MemoryProfileStore(write_batch_limit=2, fail_writes_after=1)
        seed_posts(store, 5)

        with pytest.raises(RepairError) as exc_info:
            await repairer_for(store).repair("alice", "A", "a.png")

        result = exc_info.value.result
        assert result is not None
        assert result.batches == 1
        assert result.operations == 2
        assert isinstance(exc_info.value.__cause__, StoreError)

        names = [store.get_post(f"p{i}").author_name for i in range(5)]
        assert names.count("A") == 2
        assert store.write_calls == [2]

    @pytest.mark.asyncio
    async def test_query_failure_is_repair_error(self):
        class BrokenStore(MemoryProfileStore):
            async def find_by_owner(self, owner_id):
                raise StoreError("index unavailable")

        with pytest.raises(RepairError, match="index unavailable"):
            await repairer_for(BrokenStore()).repair("alice", "A", "a.png")

    @pytest.mark.asyncio
    async def test_records_metrics(self):
        metrics = SyncMetrics()
        ok_store = MemoryProfileStore()
        seed_posts(ok_store, 2)
        await repairer_for(ok_store, metrics=metrics).repair("alice", "A", "a.png")

        bad_store = MemoryProfileStore(fail_writes_after=0)
        seed_posts(bad_store, 2)
        with pytest.raises(RepairError):
            await repairer_for(bad_store, metrics=metrics).repair("alice", "A", "a.png")

        backend = metrics.backend
        assert backend.get_counter("repairs", labels={"status": "success"}) == 1
        assert backend.get_counter("repairs", labels={"status": "error"}) == 1
        assert backend.get_counter("repair_batches") == 1
        assert backend.get_histogram_stats("repair_duration_ms")["count"] == 2

    @pytest.mark.asyncio
    async def test_unwritable_json_store_fails_cleanly(self, tmp_path):
        """A file store that cannot save reports the repair as failed."""
        path = tmp_path / "store.json"
        path.write_text(json.dumps({USERS: {}, POSTS: {}}))
        store = JsonFileProfileStore(path)
        seed_posts(store, 2)
        path.with_suffix(".json.tmp").mkdir()
        metrics = SyncMetrics()

        with pytest.raises(RepairError) as exc_info:
            await repairer_for(store, metrics=metrics).repair("alice", "A", "a.png")

        assert isinstance(exc_info.value.__cause__, StoreError)
        assert exc_info.value.result.batches == 0
        assert store.get_post("p0").author_name == "User alice"
        assert metrics.backend.get_counter("repairs", labels={"status": "error"}) == 1
