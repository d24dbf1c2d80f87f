"""
Profile Sync service: cache-backed profile reads with detached reference repair.

Provides a single object for:
- Profile lookups through the TTL cache (single and batched)
- Read-time enrichment of posts with current author data
- Profile updates that invalidate the cache and repair denormalized
  copies in the background
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from .cache import ProfileCache
from .config import SyncConfig
from .enrichment import ContentEnricher
from .errors import RepairError, StoreUnavailableError
from .events import EventEmitter, RepairEvent, RepairStatus
from .repair import ReferenceRepairer
from .store import UPDATED_AT, ProfileStore, get_store
from .tasks import AsyncioTaskRunner, TaskRunner
from .types import Post, Profile, utc_now
from .utils.metrics import MetricsConfig, SyncMetrics

logger = logging.getLogger(__name__)


class ProfileSync(EventEmitter):
    """
    Profile Sync service.

    Owns one ProfileCache for its lifetime. Create one per process (or per
    tenant) and pass it to request handlers; call end_session() at sign-out
    so one user's cached data never leaks into the next session.

    Usage (async):
        sync = ProfileSync(store)
        posts = await sync.get_user_posts("u1")
        await sync.update_profile("u1", display_name="New Name")
        await sync.close()

    Usage (event-driven):
        sync = ProfileSync.from_config("profile-sync.yaml")

        @sync.on(RepairEvent)
        def on_repair(event):
            if event.status is RepairStatus.FAILED:
                reconcile_later(event.uid)
    """

    def __init__(
        self,
        store: ProfileStore,
        config: Optional[SyncConfig] = None,
        runner: Optional[TaskRunner] = None,
        metrics: Optional[SyncMetrics] = None,
        **cache_kwargs: Any,
    ):
        """
        Initialize Profile Sync.

        Args:
            store: Store adapter holding profiles and posts
            config: Optional SyncConfig (cache TTL/size, metrics)
            runner: Runner for detached repairs (default: AsyncioTaskRunner)
            metrics: Optional metrics collector (default: built from config)
            **cache_kwargs: Extra ProfileCache arguments (e.g. clock)
        """
        super().__init__()

        self._config = config or SyncConfig()
        self._store = store
        self._runner = runner or AsyncioTaskRunner()
        self._metrics = metrics or SyncMetrics(MetricsConfig(
            enabled=self._config.metrics_enabled,
            type=self._config.metrics_type,
            port=self._config.metrics_port,
        ))

        self.cache = ProfileCache(
            store,
            ttl=self._config.cache_ttl,
            max_size=self._config.cache_max_size,
            metrics=self._metrics,
            emitter=self,
            **cache_kwargs,
        )
        self.enricher = ContentEnricher(self.cache)
        self.repairer = ReferenceRepairer(store, metrics=self._metrics)

    @classmethod
    def from_config(
        cls,
        config: Union[str, SyncConfig],
        **kwargs: Any,
    ) -> "ProfileSync":
        """
        Create a service and its store from configuration.

        Args:
            config: SyncConfig or path to a YAML config file
            **kwargs: Passed to ProfileSync()

        Raises:
            StoreUnavailableError: If the json backend has no store path
        """
        if isinstance(config, str):
            config = SyncConfig.load(config)

        limits = {
            "lookup_batch_limit": config.lookup_batch_limit,
            "write_batch_limit": config.write_batch_limit,
        }
        if config.store_backend == "json":
            if not config.store_path:
                raise StoreUnavailableError("JSON store selected but no store path configured")
            store = get_store("json", path=config.store_path, **limits)
        else:
            store = get_store(config.store_backend, **limits)

        return cls(store, config=config, **kwargs)

    # === Properties ===

    @property
    def store(self) -> ProfileStore:
        return self._store

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def metrics(self) -> SyncMetrics:
        return self._metrics

    @property
    def pending_repairs(self) -> int:
        return self._runner.pending

    # === Read path ===

    async def get_profile(self, uid: str) -> Optional[Profile]:
        return await self.cache.get(uid)

    async def get_profiles(self, uids: Iterable[str]) -> Dict[str, Profile]:
        return await self.cache.get_many(uids)

    async def enrich(self, posts: Iterable[Post]) -> List[Post]:
        return await self.enricher.enrich(posts)

    async def get_user_posts(self, uid: str) -> List[Post]:
        """
        Posts authored by `uid`, newest first, with fresh author data.

        The store has no (author, time) index, so ordering happens here.
        """
        posts = await self._store.find_by_owner(uid)
        posts.sort(key=lambda p: p.created_at, reverse=True)
        return await self.enricher.enrich(posts)

    # === Update path ===

    async def update_profile(
        self,
        uid: str,
        *,
        display_name: Optional[str] = None,
        photo_url: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """
        Write profile changes and schedule repair when author fields changed.

        Returns once the profile write has succeeded and the cache entry is
        invalidated; the repair keeps running in the background.

        Returns:
            The repair task when one was scheduled on a detached runner

        Raises:
            ValueError: If no field is given
            StoreError: If the profile write fails
        """
        fields: Dict[str, Any] = {}
        if display_name is not None:
            fields["displayName"] = display_name
        if photo_url is not None:
            fields["photoURL"] = photo_url
        if bio is not None:
            fields["bio"] = bio
        if not fields:
            raise ValueError("update_profile() needs at least one field to change")

        fields[UPDATED_AT] = utc_now()
        await self._store.update_profile(uid, fields)
        logger.info(f"Updated profile {uid}: {', '.join(k for k in fields if k != UPDATED_AT)}")

        if display_name is None and photo_url is None:
            self.cache.invalidate(uid)
            return None

        # Read back the stored values so repair copies exactly what is persisted
        profile = await self._store.find_by_id(uid)
        if profile is None:
            self.cache.invalidate(uid)
            return None
        return await self.on_profile_updated(uid, profile.display_name, profile.photo_url)

    async def on_profile_updated(
        self,
        uid: str,
        display_name: str,
        photo_url: str,
    ) -> Optional[asyncio.Task]:
        """
        Invalidate `uid` and start a detached reference repair.

        Never raises because of the repair; failures are logged and
        published as RepairEvent(status=FAILED).
        """
        self.cache.invalidate(uid)

        async def job() -> None:
            await self._run_repair(uid, display_name, photo_url)

        return await self._runner.submit(job, name=f"repair:{uid}")

    async def _run_repair(self, uid: str, display_name: str, photo_url: str) -> None:
        self.emit(RepairEvent(uid=uid, status=RepairStatus.STARTED))
        try:
            result = await self.repairer.repair(uid, display_name, photo_url)
        except RepairError as e:
            logger.error(f"Reference repair for {uid} failed: {e}")
            self.emit(RepairEvent(uid=uid, status=RepairStatus.FAILED, result=e.result, error=str(e)))
            return
        except Exception as e:
            logger.error(f"Reference repair for {uid} failed unexpectedly: {e}")
            self.emit(RepairEvent(uid=uid, status=RepairStatus.FAILED, error=str(e)))
            return

        self.emit(RepairEvent(uid=uid, status=RepairStatus.COMPLETED, result=result))

    # === Lifecycle ===

    def end_session(self) -> None:
        """Drop every cached profile (sign-out)."""
        self.cache.clear()

    async def drain(self) -> None:
        """Wait for in-flight repairs to finish."""
        await self._runner.drain()

    async def close(self) -> None:
        """Finish in-flight repairs and drop the cache."""
        await self.drain()
        self.cache.clear()

    def stats(self) -> Dict[str, Any]:
        return {
            "cache": self.cache.stats(),
            "pending_repairs": self.pending_repairs,
            "metrics": self._metrics.get_all(),
        }
