"""
In-memory profile cache with TTL.

Entries are immutable Profile snapshots stamped with the time they were
stored. An entry older than the TTL is treated as absent even while it is
still in the map; it is refetched on the next access and physically
removed by a sweep when the map reaches its nominal capacity.

The cache is not locked. Interleaved coroutines may race a miss against a
set for the same uid; the last writer wins.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from .events import CacheAction, CacheEvent, EventEmitter
from .store import ProfileStore
from .types import Profile
from .utils.metrics import SyncMetrics

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300.0  # 5 minutes
DEFAULT_MAX_SIZE = 1000


@dataclass(frozen=True)
class CacheEntry:
    profile: Profile
    timestamp: float


class ProfileCache:
    """
    Profile cache in front of a ProfileStore.

    Usage:
        cache = ProfileCache(store)
        profile = await cache.get("u1")
        profiles = await cache.get_many(["u1", "u2", "u3"])
        cache.invalidate("u1")
    """

    def __init__(
        self,
        store: ProfileStore,
        ttl: float = DEFAULT_TTL,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional[SyncMetrics] = None,
        emitter: Optional[EventEmitter] = None,
    ) -> None:
        self._store = store
        self._ttl = ttl
        self._max_size = max_size
        self._clock = clock
        self._metrics = metrics
        self._emitter = emitter
        self._entries: Dict[str, CacheEntry] = {}

        self._hits = 0
        self._misses = 0
        self._lookups = 0
        self._sweeps = 0
        self._evicted = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def max_size(self) -> int:
        return self._max_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, uid: object) -> bool:
        return isinstance(uid, str) and self._fresh(uid) is not None

    def _fresh(self, uid: str) -> Optional[Profile]:
        entry = self._entries.get(uid)
        if entry is not None and self._clock() - entry.timestamp < self._ttl:
            return entry.profile
        return None

    async def get(self, uid: str) -> Optional[Profile]:
        """
        Get a profile, from cache if fresh, otherwise from the store.

        Args:
            uid: User identifier

        Returns:
            Profile, or None if the store has no such profile
        """
        profile = self._fresh(uid)
        if profile is not None:
            self._record_hits(1)
            logger.debug(f"Cache hit for {uid}")
            return profile

        self._record_misses(1)
        self._lookups += 1
        if self._metrics:
            self._metrics.record_lookup("single")
        logger.debug(f"Cache miss for {uid}, fetching from store")

        profile = await self._store.find_by_id(uid)
        if profile is not None:
            self.set(uid, profile)
        return profile

    def set(self, uid: str, profile: Profile) -> None:
        """
        Insert or refresh an entry stamped with the current time.

        At capacity, expired entries are swept first. Fresh entries are
        never evicted, so the map can grow past max_size under churn.
        """
        if len(self._entries) >= self._max_size:
            self._sweep()

        self._entries[uid] = CacheEntry(profile=profile, timestamp=self._clock())
        if self._metrics:
            self._metrics.set_cache_size(len(self._entries))

    async def get_many(self, uids: Iterable[str]) -> Dict[str, Profile]:
        """
        Resolve many profiles at once.

        Fresh entries are served from the map; the rest are fetched in
        chunks sized to the store's lookup limit, one chunk at a time.

        Args:
            uids: User identifiers (duplicates are ignored)

        Returns:
            Mapping of uid to Profile for every uid that resolved.
            Unknown uids are absent from the mapping.
        """
        result: Dict[str, Profile] = {}
        missing: List[str] = []

        for uid in dict.fromkeys(uids):
            profile = self._fresh(uid)
            if profile is not None:
                result[uid] = profile
            else:
                missing.append(uid)

        self._record_hits(len(result))
        if not missing:
            return result
        self._record_misses(len(missing))

        limit = self._store.lookup_batch_limit
        for start in range(0, len(missing), limit):
            chunk = missing[start:start + limit]
            self._lookups += 1
            if self._metrics:
                self._metrics.record_lookup("batch", len(chunk))
            logger.debug(f"Fetching {len(chunk)} profiles from store")

            requested = set(chunk)
            for profile in await self._store.find_many_by_ids(chunk):
                if profile.uid in requested:
                    result[profile.uid] = profile
                    self.set(profile.uid, profile)

        return result

    def invalidate(self, uid: str) -> None:
        """Remove the entry for `uid`. No-op if absent."""
        if self._entries.pop(uid, None) is not None:
            logger.debug(f"Invalidated cache entry for {uid}")
        if self._metrics:
            self._metrics.set_cache_size(len(self._entries))
        if self._emitter:
            self._emitter.emit(CacheEvent(action=CacheAction.INVALIDATE, uid=uid, count=1))

    def clear(self) -> None:
        """Remove every entry (sign-out / end of session)."""
        count = len(self._entries)
        self._entries.clear()
        logger.info(f"Cleared profile cache ({count} entries)")
        if self._metrics:
            self._metrics.set_cache_size(0)
        if self._emitter:
            self._emitter.emit(CacheEvent(action=CacheAction.CLEAR, count=count))

    def _sweep(self) -> None:
        now = self._clock()
        expired = [uid for uid, entry in self._entries.items() if now - entry.timestamp >= self._ttl]
        for uid in expired:
            del self._entries[uid]

        self._sweeps += 1
        self._evicted += len(expired)
        logger.debug(f"Swept {len(expired)} expired entries, {len(self._entries)} remain")
        if self._metrics:
            self._metrics.set_cache_size(len(self._entries))
        if self._emitter and expired:
            self._emitter.emit(CacheEvent(action=CacheAction.SWEEP, count=len(expired)))

    def _record_hits(self, count: int) -> None:
        self._hits += count
        if self._metrics and count:
            self._metrics.record_cache_hit(count)

    def _record_misses(self, count: int) -> None:
        self._misses += count
        if self._metrics and count:
            self._metrics.record_cache_miss(count)

    def stats(self) -> Dict[str, float]:
        """
        Get cache statistics.

        Returns:
            Dictionary with hits, misses, hit rate, store lookups,
            sweeps, evicted entries and current size
        """
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": (self._hits / total) if total > 0 else 0.0,
            "store_lookups": self._lookups,
            "sweeps": self._sweeps,
            "evicted": self._evicted,
            "size": len(self._entries),
        }
