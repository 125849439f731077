"""In-process event bus through which the engine reports state changes.

Events are named `category.action`:

    search.settled            a debounced evaluation finished
    search.cleared            a blank query reset the controller
    personalization.changed   recents or favorites changed

Emitting never blocks the caller; a worker task on the event loop delivers
queued events to subscribers.
"""

import asyncio
import inspect
import weakref
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

# Marks the end of the queue for the worker
_STOP = object()


@dataclass
class Event:
    """A named notification with its payload."""
    type: str
    data: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    source: Optional[str] = None


class EventBus:
    """
    Pub/sub over an asyncio queue.

    Subscriptions use glob patterns ('search.*', '*'). Handlers may be plain
    functions or coroutines and are held weakly, so subscribers must keep
    their own reference.
    """

    def __init__(self, max_queue: int = 1000):
        self._subscriptions: Dict[str, List[weakref.ref]] = defaultdict(list)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue)
        self._worker: Optional[asyncio.Task] = None
        self._stats: Counter = Counter()

    def subscribe(self, pattern: str, handler: Callable[[Event], Any]) -> None:
        ref = weakref.WeakMethod(handler) if inspect.ismethod(handler) else weakref.ref(handler)
        self._subscriptions[pattern].append(ref)
        logger.debug(f"Subscribed handler to {pattern}")

    def unsubscribe(self, pattern: str, handler: Callable[[Event], Any]) -> None:
        remaining = [ref for ref in self._subscriptions.get(pattern, []) if ref() not in (None, handler)]
        if remaining:
            self._subscriptions[pattern] = remaining
        else:
            self._subscriptions.pop(pattern, None)

    async def emit(self, event: Event) -> None:
        self.emit_nowait(event)

    def emit_nowait(self, event: Event) -> bool:
        """Queue an event. Returns False when the queue is full and it was dropped."""
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Event queue full, dropping {event.type}")
            self._stats['dropped'] += 1
            return False
        self._stats['emitted'] += 1
        return True

    async def start(self) -> None:
        if self._worker is not None:
            logger.warning("Event bus already running")
            return
        self._worker = asyncio.create_task(self._run())
        logger.debug("Event bus started")

    async def stop(self) -> None:
        """Deliver everything already queued, then stop the worker."""
        if self._worker is None:
            return
        await self._queue.put(_STOP)
        await self._worker
        self._worker = None
        logger.debug("Event bus stopped")

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            if event is _STOP:
                return
            try:
                await self._deliver(event)
            except Exception as e:
                logger.error(f"Error delivering {event.type}: {e}")
                self._stats['processing_errors'] += 1
            else:
                self._stats['processed'] += 1

    def _handlers_for(self, event_type: str) -> List[Callable[[Event], Any]]:
        handlers = []
        for pattern in list(self._subscriptions):
            if not self._matches_pattern(event_type, pattern):
                continue
            alive = [ref for ref in self._subscriptions[pattern] if ref() is not None]
            self._subscriptions[pattern] = alive
            handlers.extend(ref() for ref in alive)
        return handlers

    async def _deliver(self, event: Event) -> None:
        pending = []
        for handler in self._handlers_for(event.type):
            try:
                outcome = handler(event)
            except Exception as e:
                self._handler_failed(event, e)
                continue
            if inspect.isawaitable(outcome):
                pending.append(outcome)

        for outcome in await asyncio.gather(*pending, return_exceptions=True):
            if isinstance(outcome, Exception):
                self._handler_failed(event, outcome)

    def _handler_failed(self, event: Event, error: BaseException) -> None:
        logger.error(f"Handler error for {event.type}: {error}")
        self._stats['handler_errors'] += 1

    @staticmethod
    def _matches_pattern(event_type: str, pattern: str) -> bool:
        return fnmatchcase(event_type, pattern)

    def get_stats(self) -> Dict[str, int]:
        return dict(self._stats)
