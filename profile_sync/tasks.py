"""
Background task runners for detached work.

ProfileSync hands reference repairs to a TaskRunner instead of awaiting
them, so the profile-update path returns as soon as its own write is done.

- AsyncioTaskRunner: schedules each job as an asyncio task on the running
  loop and keeps a reference until it finishes. drain() waits for all
  in-flight jobs (shutdown, tests).
- InlineTaskRunner: runs the job to completion before submit() returns.
  For scripts and tests that want deterministic ordering.

Runners never let a job's exception escape. Jobs are expected to handle
their own errors; anything that still escapes is logged here.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class TaskRunner(ABC):
    """Runs detached jobs."""

    @abstractmethod
    async def submit(self, job: Job, name: str = "") -> Optional[asyncio.Task]:
        """Start `job`. Returns a task handle when the job runs detached."""
        ...

    @abstractmethod
    async def drain(self) -> None:
        """Wait until every submitted job has finished."""
        ...

    @property
    @abstractmethod
    def pending(self) -> int:
        """Number of jobs not yet finished."""
        ...


class AsyncioTaskRunner(TaskRunner):
    """
    Runs jobs as asyncio tasks.

    Usage:
        runner = AsyncioTaskRunner()
        await runner.submit(lambda: repairer.repair(uid, name, photo), name="repair:u1")
        ...
        await runner.drain()
    """

    def __init__(self) -> None:
        # The loop only keeps weak references to tasks
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def submit(self, job: Job, name: str = "") -> asyncio.Task:
        task = asyncio.create_task(self._run(job, name), name=name or None)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @staticmethod
    async def _run(job: Job, name: str) -> None:
        try:
            await job()
        except asyncio.CancelledError:
            logger.warning(f"Background job cancelled: {name or job!r}")
            raise
        except Exception as e:
            logger.error(f"Background job failed ({name or job!r}): {e}")


class InlineTaskRunner(TaskRunner):
    """Runs each job immediately and waits for it."""

    @property
    def pending(self) -> int:
        return 0

    async def submit(self, job: Job, name: str = "") -> None:
        try:
            await job()
        except Exception as e:
            logger.error(f"Background job failed ({name or job!r}): {e}")
        return None

    async def drain(self) -> None:
        return None
