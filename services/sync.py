"""
View synchronizer: keeps a viewer's snapshot of "records relevant to me" in
line with the store.

Each subscription fetches its scope once on open, then refetches the whole
scope on every table-wide change notification and emits it as a fresh
snapshot. There is no diffing: the latest full scoped result always replaces
the previous one.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from exceptions import StoreError
from schemas.loan_request import LoanRecord
from services.store import RecordStore, SubscriptionHandle

logger = logging.getLogger(__name__)

_CLOSED = object()


@dataclass(frozen=True)
class ViewScope:
    """All records (administrator) or the records of one mobile number (applicant)."""
    mobile_number: Optional[str] = None

    @classmethod
    def all(cls) -> "ViewScope":
        return cls()

    @classmethod
    def by_mobile(cls, mobile_number: str) -> "ViewScope":
        return cls(mobile_number=mobile_number.strip())

    @property
    def is_all(self) -> bool:
        return self.mobile_number is None

    def describe(self) -> str:
        return "all" if self.is_all else f"mobile ****{self.mobile_number[-4:]}"


@dataclass
class Snapshot:
    scope: ViewScope
    records: list[LoanRecord]
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def fetch_scope(store: RecordStore, scope: ViewScope) -> list[LoanRecord]:
    if scope.is_all:
        return await store.query_all()
    return await store.query_by_mobile(scope.mobile_number)


class ViewSubscription:
    """
    Async iterator of Snapshots for one viewer.

    Fetch failures are delivered in order and raised from next(); the
    subscription stays usable afterwards. close() releases the change listener
    and drops any fetch still in flight.
    """

    def __init__(self, store: RecordStore, scope: ViewScope):
        self.store = store
        self.scope = scope
        self.latest: Optional[Snapshot] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._handle: Optional[SubscriptionHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False
        # Fetch sequence numbers; a fetch older than the last emitted one is dropped
        self._issued = 0
        self._emitted = 0

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> "ViewSubscription":
        self._loop = asyncio.get_running_loop()
        # Listen before the first fetch so no write can slip in between
        self._handle = self.store.subscribe_to_table_changes(self._on_change)
        logger.info("View subscription opened (%s)", self.scope.describe())
        try:
            await self._refresh(self._next_seq(), initial=True)
        except BaseException:
            await self.close()
            raise
        return self

    def _next_seq(self) -> int:
        self._issued += 1
        return self._issued

    def _on_change(self) -> None:
        if self._closed or self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._schedule_refresh)

    def _schedule_refresh(self) -> None:
        if self._closed:
            return
        task = asyncio.ensure_future(self._refresh(self._next_seq()))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _refresh(self, seq: int, initial: bool = False) -> None:
        try:
            records = await fetch_scope(self.store, self.scope)
        except StoreError as e:
            if initial:
                raise
            if self._closed or seq < self._emitted:
                logger.debug("Dropping failure of a superseded fetch (%s)", self.scope.describe())
                return
            self._queue.put_nowait(e)
            return
        if self._closed:
            logger.debug("Discarding fetch completed after unsubscribe (%s)", self.scope.describe())
            return
        if seq < self._emitted:
            return
        self._emitted = seq
        snapshot = Snapshot(scope=self.scope, records=records)
        self.latest = snapshot
        self._queue.put_nowait(snapshot)

    async def next(self) -> Snapshot:
        if self._closed:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, StoreError):
            raise item
        return item

    def __aiter__(self):
        return self

    async def __anext__(self) -> Snapshot:
        return await self.next()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._handle is not None:
            self._handle.release()
        self._queue.put_nowait(_CLOSED)
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("View subscription closed (%s)", self.scope.describe())

    async def __aenter__(self) -> "ViewSubscription":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class ViewSynchronizer:
    def __init__(self, store: RecordStore):
        self.store = store

    async def subscribe(self, scope: ViewScope) -> ViewSubscription:
        """Open a subscription; its initial snapshot is already queued on return."""
        return await ViewSubscription(self.store, scope).open()

    async def fetch(self, scope: ViewScope) -> Snapshot:
        """One explicit fetch, for manual refresh."""
        return Snapshot(scope=scope, records=await fetch_scope(self.store, scope))
