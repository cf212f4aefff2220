import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable, FrozenSet, Generic, Iterable, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"
ALL_EVENTS = frozenset({INSERT, UPDATE, DELETE})


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str


ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


@dataclass(eq=False)
class Subscription:
    id: int
    table: str
    events: FrozenSet[str]
    callback: ChangeCallback
    active: bool = field(default=True)


def _normalize_events(events: Union[str, Iterable[str]]) -> FrozenSet[str]:
    if isinstance(events, str):
        events = [events]
    normalized = set()
    for event in events:
        event = event.upper()
        if event == "*":
            return ALL_EVENTS
        if event not in ALL_EVENTS:
            raise ValueError(f"Unknown change event: {event}")
        normalized.add(event)
    return frozenset(normalized)


class ChangeFeed:
    """
    In-process change notifications per table.

    Subscribers only learn that a table changed, never which row.
    """

    def __init__(self):
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._pending: set[asyncio.Task] = set()

    def subscribe(
        self,
        table: str,
        events: Union[str, Iterable[str]],
        callback: ChangeCallback,
    ) -> Subscription:
        sub = Subscription(
            id=next(self._ids),
            table=table,
            events=_normalize_events(events),
            callback=callback,
        )
        self._subscriptions[sub.id] = sub
        logger.debug("Subscribed #%s to %s %s", sub.id, table, sorted(sub.events))
        return sub

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if self._subscriptions.pop(subscription.id, None) is not None:
            logger.debug("Unsubscribed #%s from %s", subscription.id, subscription.table)

    def subscriber_count(self, table: Optional[str] = None) -> int:
        if table is None:
            return len(self._subscriptions)
        return sum(1 for sub in self._subscriptions.values() if sub.table == table)

    async def publish(self, table: str, event: str) -> None:
        """
        Schedules every matching callback and returns without waiting for them.
        Callback errors are logged when the delivery task finishes.
        """
        change = ChangeEvent(table=table, event=event.upper())
        for sub in list(self._subscriptions.values()):
            if sub.table != table or change.event not in sub.events:
                continue
            task = asyncio.create_task(self._deliver(sub, change))
            self._pending.add(task)
            task.add_done_callback(partial(self._delivered, sub))

    def _delivered(self, sub: Subscription, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Change callback #%s for %s failed: %s",
                sub.id, sub.table, exc, exc_info=exc,
            )

    async def drain(self) -> None:
        """Waits until every scheduled delivery has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @staticmethod
    async def _deliver(sub: Subscription, change: ChangeEvent) -> None:
        # Unsubscribed while an earlier callback was running
        if not sub.active:
            return
        await sub.callback(change)


T = TypeVar("T")


class LiveList(Generic[T]):
    """
    Keeps a snapshot of one table in sync with the change feed.

    Every notification triggers a full fetch-and-replace. Results that
    arrive after close() are dropped.
    """

    def __init__(
        self,
        feed: ChangeFeed,
        table: str,
        fetch: Callable[[], Awaitable[T]],
        listener: Optional[Callable[[T], Awaitable[Any]]] = None,
        events: Union[str, Iterable[str]] = "*",
    ):
        self._feed = feed
        self._table = table
        self._fetch = fetch
        self._listener = listener
        self._events = events
        self._subscription: Optional[Subscription] = None
        self._closed = False
        self._generation = 0
        self._applied = 0
        self.items: Optional[T] = None

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> "LiveList[T]":
        if self._closed:
            raise RuntimeError("LiveList is closed")
        self._subscription = self._feed.subscribe(self._table, self._events, self._on_change)
        await self.refresh()
        return self

    async def refresh(self) -> bool:
        """Fetches and replaces the snapshot. Returns False if the result was discarded."""
        self._generation += 1
        generation = self._generation
        result = await self._fetch()

        # Closed meanwhile, or a newer fetch already landed
        if self._closed or generation < self._applied:
            logger.debug("Discarding stale %s snapshot", self._table)
            return False

        self._applied = generation
        self.items = result
        if self._listener is not None:
            await self._listener(result)
        return True

    async def _on_change(self, change: ChangeEvent) -> None:
        if self._closed:
            return
        logger.debug("%s on %s, refreshing", change.event, change.table)
        await self.refresh()

    def close(self) -> None:
        self._closed = True
        if self._subscription is not None:
            self._feed.unsubscribe(self._subscription)
            self._subscription = None

    async def __aenter__(self) -> "LiveList[T]":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
