"""JSON file document store.

File layout:
    {
      "users": {"<uid>": {uid, displayName, photoURL, ...}},
      "posts": {"<postId>": {authorId, authorName, comments: [...], ...}}
    }

The file is read on first use and rewritten after every committed batch
or profile update (write to a sibling temp file, then rename). A failed
write raises StoreError and leaves the loaded documents unchanged.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Union

from ..errors import StoreError, StoreUnavailableError
from ._base import DEFAULT_LOOKUP_BATCH_LIMIT, DEFAULT_WRITE_BATCH_LIMIT, POSTS, USERS
from ._codec import encode_value
from ._memory import Documents, MemoryProfileStore

logger = logging.getLogger(__name__)


class JsonFileProfileStore(MemoryProfileStore):
    """ProfileStore persisted to a single JSON file."""

    def __init__(
        self,
        path: Union[str, Path],
        lookup_batch_limit: int = DEFAULT_LOOKUP_BATCH_LIMIT,
        write_batch_limit: int = DEFAULT_WRITE_BATCH_LIMIT,
    ) -> None:
        super().__init__(lookup_batch_limit, write_batch_limit)
        self._path = Path(path).expanduser()
        self._loaded: Optional[Documents] = None

    @property
    def path(self) -> Path:
        return self._path

    def _documents(self) -> Documents:
        if self._loaded is None:
            self._loaded = self._load()
        return self._loaded

    def _load(self) -> Documents:
        if not self._path.is_file():
            raise StoreUnavailableError(f"Store file not found: {self._path}")
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise StoreUnavailableError(f"Cannot read store file {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreUnavailableError(f"Store file {self._path} is not a JSON object")

        logger.debug(
            f"Loaded {len(data.get(USERS) or {})} profiles and "
            f"{len(data.get(POSTS) or {})} posts from {self._path}"
        )
        return {USERS: data.get(USERS) or {}, POSTS: data.get(POSTS) or {}}

    def _apply(self, mutate: Callable[[Documents], None]) -> None:
        # Mutate a copy; the loaded documents change only once the file is saved
        docs = copy.deepcopy(self._documents())
        mutate(docs)
        self._save(docs)
        self._loaded = docs

    def _save(self, docs: Documents) -> None:
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            tmp_path.write_text(
                json.dumps(docs, default=encode_value, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(tmp_path, self._path)
        except (OSError, TypeError, ValueError) as exc:
            raise StoreError(f"Cannot write store file {self._path}: {exc}") from exc
