"""
A live view: one view subscription plus one periodic ticker.

Frames are produced on every new snapshot and on every tick, so disbursed
countdowns keep moving between record changes. Each frame renders the latest
snapshot against the wall clock at that moment.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional

from exceptions import StoreError
from schemas.loan_request import LoanRequestView
from services.presenter import render_records
from services.sync import Snapshot, ViewScope, ViewSubscription, ViewSynchronizer
from services.ticker import PeriodicTicker

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LiveFrame:
    reason: str  # "snapshot", "tick" or "error"
    records: list[LoanRequestView]
    rendered_at: datetime
    error: Optional[str] = None


class LiveView:
    def __init__(
        self,
        synchronizer: ViewSynchronizer,
        scope: ViewScope,
        *,
        for_admin: bool,
        tick_seconds: float,
        clock: Clock = utc_now,
    ):
        self.synchronizer = synchronizer
        self.scope = scope
        self.for_admin = for_admin
        self.tick_seconds = tick_seconds
        self.clock = clock
        self._events: asyncio.Queue = asyncio.Queue()
        self._subscription: Optional[ViewSubscription] = None
        self._ticker: Optional[PeriodicTicker] = None
        self._pump: Optional[asyncio.Task] = None

    async def start(self) -> None:
        self._subscription = await self.synchronizer.subscribe(self.scope)
        self._pump = asyncio.get_running_loop().create_task(self._forward_snapshots())
        self._ticker = PeriodicTicker(self.tick_seconds, lambda: self._events.put_nowait(("tick", None)))
        self._ticker.start()

    async def _forward_snapshots(self) -> None:
        while True:
            try:
                snapshot = await self._subscription.next()
            except StopAsyncIteration:
                return
            except StoreError as e:
                self._events.put_nowait(("error", e))
                continue
            self._events.put_nowait(("snapshot", snapshot))

    def _render(self, snapshot: Optional[Snapshot], reason: str, error: Optional[str] = None) -> LiveFrame:
        now = self.clock()
        records = render_records(snapshot.records, now, for_admin=self.for_admin) if snapshot else []
        return LiveFrame(reason=reason, records=records, rendered_at=now, error=error)

    async def frames(self) -> AsyncIterator[LiveFrame]:
        while True:
            reason, payload = await self._events.get()
            latest = self._subscription.latest if self._subscription else None
            if reason == "error":
                yield self._render(latest, reason, error=payload.message)
            elif reason == "snapshot":
                yield self._render(payload, reason)
            else:
                yield self._render(latest, reason)

    async def stop(self) -> None:
        if self._ticker is not None:
            await self._ticker.stop()
        if self._subscription is not None:
            await self._subscription.close()
        if self._pump is not None:
            self._pump.cancel()
            try:
                await self._pump
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "LiveView":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
