"""
Profile Sync: profile cache and denormalized-reference repair.

Posts and comments carry copies of their author's display name and avatar.
Profile Sync keeps reads of those copies fresh through an in-memory TTL
cache, and rewrites the copies in the background whenever a profile
changes.

Basic Usage:
    import asyncio
    from profile_sync import ProfileSync
    from profile_sync.store import JsonFileProfileStore

    async def main():
        sync = ProfileSync(JsonFileProfileStore("store.json"))
        posts = await sync.get_user_posts("u1")
        await sync.update_profile("u1", display_name="New Name")
        await sync.close()

    asyncio.run(main())

Event-Driven Usage:
    from profile_sync import ProfileSync, RepairEvent, RepairStatus

    sync = ProfileSync.from_config("profile-sync.yaml")

    @sync.on(RepairEvent)
    def on_repair(event):
        if event.status is RepairStatus.FAILED:
            print("stale copies left for", event.uid)
"""

__version__ = "1.0.0"

# Building blocks
from .cache import CacheEntry, ProfileCache
from .config import SyncConfig
from .enrichment import ContentEnricher

# Errors
from .errors import ProfileSyncError, RepairError, StoreError, StoreUnavailableError

# Event system
from .events import (
    CacheAction,
    CacheEvent,
    EventEmitter,
    RepairEvent,
    RepairStatus,
    SyncEvent,
)
from .repair import ReferenceRepairer

# Main service class
from .service import ProfileSync
from .tasks import AsyncioTaskRunner, InlineTaskRunner, TaskRunner

# Type definitions
from .types import Comment, Post, Profile, RepairResult, WriteOp

__all__ = [
    # Version
    "__version__",
    # Main class
    "ProfileSync",
    # Building blocks
    "CacheEntry",
    "ProfileCache",
    "ContentEnricher",
    "ReferenceRepairer",
    "TaskRunner",
    "AsyncioTaskRunner",
    "InlineTaskRunner",
    # Configuration
    "SyncConfig",
    # Types
    "Comment",
    "Post",
    "Profile",
    "RepairResult",
    "WriteOp",
    # Errors
    "ProfileSyncError",
    "RepairError",
    "StoreError",
    "StoreUnavailableError",
    # Events
    "CacheAction",
    "CacheEvent",
    "EventEmitter",
    "RepairEvent",
    "RepairStatus",
    "SyncEvent",
]
