"""
In-process realtime change feed.

Every write made through the data service is published here as a
``ChangeEvent``. Subscribers register per table, optionally narrowed by an
equality filter on the changed row, and receive events asynchronously: each
subscription owns a queue drained by its own task, so a slow handler never
blocks the writer that published the event.
"""
import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    type: EventType
    new: Optional[Dict[str, Any]] = None
    old: Optional[Dict[str, Any]] = None

    @property
    def record(self) -> Dict[str, Any]:
        return self.new if self.new is not None else (self.old or {})


Handler = Callable[[ChangeEvent], Awaitable[None]]


class Subscription:
    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        handler: Handler,
        filters: Optional[Mapping[str, Any]] = None,
    ):
        self.table = table
        self.filters = dict(filters or {})
        self.active = True
        self._feed = feed
        self._handler = handler
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self.pending = 0

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        record = event.record
        return all(record.get(name) == value for name, value in self.filters.items())

    def deliver(self, event: ChangeEvent) -> None:
        if not self.active:
            return
        self.pending += 1
        self._queue.put_nowait(event)
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._handler(event)
            except Exception:
                logger.exception("Handler for %s %s event failed", event.table, event.type.value)
            finally:
                self.pending -= 1
                self._queue.task_done()

    async def join(self) -> None:
        await self._queue.join()

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._feed.remove(self)
        if self._task is not None:
            self._task.cancel()
            self._task = None
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            self.pending -= 1


class ChangeFeed:
    def __init__(self):
        self._subscriptions: List[Subscription] = []

    def subscribe(
        self,
        table: str,
        handler: Handler,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> Subscription:
        subscription = Subscription(self, table, handler, filters)
        self._subscriptions.append(subscription)
        logger.debug("Subscribed to %s with filters %s", table, subscription.filters)
        return subscription

    def remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, event: ChangeEvent) -> None:
        for subscription in list(self._subscriptions):
            if subscription.matches(event):
                subscription.deliver(event)

    async def drain(self) -> None:
        """Wait until every queued event has been handled."""
        # handlers may trigger follow-up events, so loop until quiet
        while True:
            busy = [s for s in self._subscriptions if s.pending]
            if not busy:
                return
            for subscription in busy:
                await subscription.join()
