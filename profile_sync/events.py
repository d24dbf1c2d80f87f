"""
Profile Sync event system.

Events are emitted for:
- Reference repair lifecycle (started, completed, failed)
- Cache invalidation and clearing

A failed repair is only ever reported here and in the log, so a
reconciliation job can subscribe to RepairEvent and act on FAILED.
"""

import logging
import threading
import time
from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Type, TypeVar

from .types import RepairResult

logger = logging.getLogger(__name__)


class RepairStatus(Enum):
    """Lifecycle of a detached reference repair."""
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"


class CacheAction(Enum):
    INVALIDATE = "invalidate"
    CLEAR = "clear"
    SWEEP = "sweep"


@dataclass
class SyncEvent(ABC):
    """Base event class for all Profile Sync events."""
    timestamp: float = field(default_factory=time.time)


@dataclass
class RepairEvent(SyncEvent):
    """
    Reference repair progress.

    `result` is set on COMPLETED, and on FAILED when partial progress is known.
    """
    uid: str = ""
    status: RepairStatus = RepairStatus.STARTED
    result: Optional[RepairResult] = None
    error: Optional[str] = None


@dataclass
class CacheEvent(SyncEvent):
    """Cache entries removed outside of normal expiry."""
    action: CacheAction = CacheAction.INVALIDATE
    uid: str = ""
    count: int = 0


E = TypeVar("E", bound=SyncEvent)


class EventEmitter:
    """
    Event emitter for Profile Sync.

    Usage:
        emitter = EventEmitter()

        @emitter.on(RepairEvent)
        def on_repair(event: RepairEvent):
            print(event.uid, event.status)

        emitter.emit(RepairEvent(uid="u1"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[SyncEvent], List[Callable[..., None]]] = {}
        self._global_handlers: List[Callable[[SyncEvent], None]] = []
        self._lock = threading.Lock()

    def on(self, event_type: Type[E]) -> Callable[[Callable[[E], None]], Callable[[E], None]]:
        """
        Decorator to register an event handler.

        Args:
            event_type: The event class to handle

        Returns:
            Decorator function
        """
        def decorator(func: Callable[[E], None]) -> Callable[[E], None]:
            self.add_handler(event_type, func)
            return func
        return decorator

    def on_any(self, func: Callable[[SyncEvent], None]) -> Callable[[SyncEvent], None]:
        """Register a handler for all events."""
        with self._lock:
            self._global_handlers.append(func)
        return func

    def add_handler(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        """Add an event handler programmatically."""
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def emit(self, event: SyncEvent) -> None:
        """
        Emit an event to all registered handlers.

        Handler lists are snapshotted under the lock and called without it,
        so handlers may register or remove handlers. Handler exceptions are
        logged and never reach the emitter.

        Args:
            event: The event to emit
        """
        with self._lock:
            handlers = list(self._global_handlers) + list(self._handlers.get(type(event), []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Event handler error ({type(event).__name__}): {e}")

    def remove_handler(self, event_type: Type[E], handler: Callable[[E], None]) -> None:
        """Remove a specific handler."""
        with self._lock:
            if event_type in self._handlers:
                self._handlers[event_type] = [
                    h for h in self._handlers[event_type] if h != handler
                ]

    def clear_handlers(self, event_type: Optional[Type[E]] = None) -> None:
        """
        Clear handlers.

        Args:
            event_type: If provided, clear only handlers for this type.
                       If None, clear all handlers.
        """
        with self._lock:
            if event_type is not None:
                self._handlers[event_type] = []
            else:
                self._handlers.clear()
                self._global_handlers.clear()

    def handler_count(self, event_type: Optional[Type[E]] = None) -> int:
        """Get the number of registered handlers."""
        with self._lock:
            if event_type is not None:
                return len(self._handlers.get(event_type, []))
            return sum(len(h) for h in self._handlers.values()) + len(self._global_handlers)
