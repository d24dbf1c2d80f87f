"""Abstract base class for profile stores."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from ..types import Post, Profile, WriteOp

USERS = "users"
POSTS = "posts"

DEFAULT_LOOKUP_BATCH_LIMIT = 10
DEFAULT_WRITE_BATCH_LIMIT = 500


class ProfileStore(ABC):
    """Boundary to the document store holding profiles and posts.

    Implementations convert store documents into typed values; nothing
    above this layer sees raw documents or store-native timestamps.

    Two hard limits are imposed by the store and exposed here so callers
    can chunk: find_many_by_ids() takes at most `lookup_batch_limit` ids,
    batch_write() takes at most `write_batch_limit` operations.
    """

    def __init__(
        self,
        lookup_batch_limit: int = DEFAULT_LOOKUP_BATCH_LIMIT,
        write_batch_limit: int = DEFAULT_WRITE_BATCH_LIMIT,
    ) -> None:
        self._lookup_batch_limit = lookup_batch_limit
        self._write_batch_limit = write_batch_limit

    @property
    def lookup_batch_limit(self) -> int:
        return self._lookup_batch_limit

    @property
    def write_batch_limit(self) -> int:
        return self._write_batch_limit

    @abstractmethod
    async def find_by_id(self, uid: str) -> Optional[Profile]:
        """Point lookup of a profile. None if it does not exist."""
        ...

    @abstractmethod
    async def find_many_by_ids(self, uids: Sequence[str]) -> List[Profile]:
        """Profiles matching any of `uids` (at most lookup_batch_limit)."""
        ...

    @abstractmethod
    async def find_by_owner(self, owner_id: str) -> List[Post]:
        """Posts whose author is `owner_id`, in no particular order."""
        ...

    @abstractmethod
    async def find_commented_by(self, uid: str) -> List[Post]:
        """Posts carrying at least one comment authored by `uid`."""
        ...

    @abstractmethod
    async def batch_write(self, ops: Sequence[WriteOp]) -> None:
        """Apply `ops` atomically (at most write_batch_limit).

        Raises:
            StoreError: If the batch is rejected; nothing is applied.
        """
        ...

    @abstractmethod
    async def update_profile(self, uid: str, fields: Dict[str, Any]) -> None:
        """Merge document `fields` into the profile document of `uid`."""
        ...
