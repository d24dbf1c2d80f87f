#!/usr/bin/env python3
"""
Profile repair example: cached reads, enrichment and detached repair.

Seeds an in-memory store with posts whose author fields are out of date,
reads them enriched, renames a user and waits for the background repair.

Usage:
    python examples/profile_repair.py
    python examples/profile_repair.py --posts 1200 --batch-limit 500
"""

import argparse
import asyncio

from profile_sync import Post, Profile, ProfileSync, RepairEvent, RepairStatus
from profile_sync.store import MemoryProfileStore


def seed(store: MemoryProfileStore, posts: int) -> None:
    store.put_profile(Profile(uid="ada", display_name="Ada", photo_url="ada.png"))
    for i in range(posts):
        store.put_post(Post(
            id=f"p{i}",
            author_id="ada",
            author_name="Ada (old name)",
            author_photo_url="old.png",
            content=f"Post number {i}",
        ))


async def run(posts: int, batch_limit: int) -> None:
    store = MemoryProfileStore(write_batch_limit=batch_limit)
    seed(store, posts)
    sync = ProfileSync(store)

    @sync.on(RepairEvent)
    def on_repair(event: RepairEvent) -> None:
        if event.status is RepairStatus.COMPLETED:
            r = event.result
            print(f"Repair done: {r.posts_matched} posts in {r.batches} batches ({r.duration_ms}ms)")
        elif event.status is RepairStatus.FAILED:
            print(f"Repair failed: {event.error}")

    try:
        # Stored copies are stale, reads are not
        latest = (await sync.get_user_posts("ada"))[0]
        print(f"Stored name: {store.get_post(latest.id).author_name}")
        print(f"Read name:   {latest.author_name}")

        await sync.update_profile("ada", display_name="Ada Lovelace")
        print(f"Update returned, {sync.pending_repairs} repair(s) running")

        await sync.drain()
        print(f"Stored name: {store.get_post(latest.id).author_name}")
        print(f"Batch sizes: {store.write_calls}")
    finally:
        await sync.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Profile Sync repair example")
    parser.add_argument("--posts", "-n", type=int, default=25, help="Posts to seed")
    parser.add_argument("--batch-limit", "-b", type=int, default=10, help="Max writes per batch")
    args = parser.parse_args()
    if args.posts < 1:
        parser.error("--posts must be at least 1")
    if args.batch_limit < 1:
        parser.error("--batch-limit must be at least 1")

    asyncio.run(run(args.posts, args.batch_limit))


if __name__ == "__main__":
    main()
