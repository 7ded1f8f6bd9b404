"""
Server-Sent Events framing and the lifetime of streamed live views.
Run from project root: python -m pytest tests/test_streaming.py -v
"""
import asyncio
import json
import unittest
from datetime import datetime, timezone

from api.streaming import frame_to_event, live_events
from exceptions import StoreError
from services.live_view import LiveFrame, LiveView
from services.presenter import render_records
from services.store import RecordStore
from services.sync import ViewScope, ViewSynchronizer
from tests.store_support import make_store, new_fields, store_for


class FakeRequest:
    """Stands in for a Starlette request; only the disconnect check is used."""

    def __init__(self):
        self.disconnected = False
        self.polls = 0

    async def is_disconnected(self):
        self.polls += 1
        return self.disconnected


def parse_event(text):
    assert text.endswith("\n\n"), text
    event_line, data_line = text[:-2].split("\n")
    assert event_line.startswith("event: ") and data_line.startswith("data: "), text
    return event_line[len("event: "):], json.loads(data_line[len("data: "):])


async def _next_event(events, timeout=2.0):
    return parse_event(await asyncio.wait_for(events.__anext__(), timeout))


class TestFrameToEvent(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine, self.store = await make_store()

    async def asyncTearDown(self):
        await self.engine.dispose()

    async def test_snapshot_frame(self):
        record = await self.store.insert(new_fields(amount=500))
        now = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
        frame = LiveFrame(reason="snapshot", records=render_records([record], now, for_admin=False), rendered_at=now)
        event, payload = parse_event(frame_to_event(frame))
        self.assertEqual(event, "snapshot")
        self.assertEqual(payload["reason"], "snapshot")
        self.assertEqual(payload["renderedAt"], "2026-01-05T12:00:00+00:00")
        self.assertNotIn("error", payload)
        self.assertEqual(payload["records"][0]["id"], record.id)
        self.assertEqual(payload["records"][0]["repaymentAmount"], 510)
        self.assertEqual(payload["records"][0]["allowedActions"], [])
        self.assertEqual(payload["records"][0]["panNumber"], "AB******4F")

    def test_error_frame(self):
        now = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)
        frame = LiveFrame(reason="error", records=[], rendered_at=now, error="Failed to fetch loan requests")
        event, payload = parse_event(frame_to_event(frame))
        self.assertEqual(event, "error")
        self.assertEqual(payload["error"], "Failed to fetch loan requests")
        self.assertEqual(payload["records"], [])


class TestLiveEvents(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.engine, self.store = await make_store()
        self.sync = ViewSynchronizer(self.store)

    async def asyncTearDown(self):
        await self.engine.dispose()

    def _view(self, synchronizer=None, scope=None):
        return LiveView(synchronizer or self.sync, scope or ViewScope.all(), for_admin=True, tick_seconds=60)

    async def test_streams_snapshots_and_releases_on_close(self):
        events = live_events(self._view(), FakeRequest(), disconnect_poll=0.01)
        event, payload = await _next_event(events)
        self.assertEqual(event, "snapshot")
        self.assertEqual(payload["records"], [])
        self.assertEqual(self.store.notifier.listener_count, 1)

        record = await self.store.insert(new_fields(amount=250))
        event, payload = await _next_event(events)
        self.assertEqual(event, "snapshot")
        self.assertEqual([r["id"] for r in payload["records"]], [record.id])
        self.assertEqual(payload["records"][0]["allowedActions"], ["approve", "reject"])

        await events.aclose()
        self.assertEqual(self.store.notifier.listener_count, 0)

    async def test_tick_frames_are_streamed(self):
        view = LiveView(self.sync, ViewScope.all(), for_admin=False, tick_seconds=0.02)
        events = live_events(view, FakeRequest(), disconnect_poll=0.01)
        self.assertEqual((await _next_event(events))[0], "snapshot")
        self.assertEqual((await _next_event(events))[0], "tick")
        await events.aclose()
        self.assertEqual(self.store.notifier.listener_count, 0)

    async def test_initial_fetch_failure_sends_one_error_event(self):
        class DownStore(RecordStore):
            async def query_all(inner_self):
                raise StoreError("Failed to fetch loan requests")

        down = store_for(self.engine, DownStore)
        events = live_events(self._view(ViewSynchronizer(down)), FakeRequest())
        event, payload = await _next_event(events)
        self.assertEqual(event, "error")
        self.assertEqual(payload, {"error": "Failed to fetch loan requests"})
        with self.assertRaises(StopAsyncIteration):
            await asyncio.wait_for(events.__anext__(), 1)
        self.assertEqual(down.notifier.listener_count, 0)

    async def test_disconnect_ends_stream_between_frames(self):
        request = FakeRequest()
        events = live_events(self._view(), request, disconnect_poll=0.01)
        self.assertEqual((await _next_event(events))[0], "snapshot")
        self.assertEqual(self.store.notifier.listener_count, 1)

        # no record change and no tick is due; only the watcher can end the stream
        request.disconnected = True
        with self.assertRaises(StopAsyncIteration):
            await asyncio.wait_for(events.__anext__(), 1)
        self.assertEqual(self.store.notifier.listener_count, 0)
        self.assertGreater(request.polls, 1)


if __name__ == "__main__":
    unittest.main()
