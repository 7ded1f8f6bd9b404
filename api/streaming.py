"""Server-Sent Events rendering of live views."""
from __future__ import annotations

import asyncio
import json
from typing import AsyncIterator

from fastapi import Request

from exceptions import StoreError
from services.live_view import LiveFrame, LiveView

SSE_MEDIA_TYPE = "text/event-stream"
DISCONNECT_POLL_SECONDS = 1.0


def frame_to_event(frame: LiveFrame) -> str:
    payload = {
        "reason": frame.reason,
        "renderedAt": frame.rendered_at.isoformat(),
        "records": [r.model_dump(mode="json", by_alias=True) for r in frame.records],
    }
    if frame.error:
        payload["error"] = frame.error
    return f"event: {frame.reason}\ndata: {json.dumps(payload)}\n\n"


async def _wait_for_disconnect(request: Request, poll_seconds: float) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(poll_seconds)


async def live_events(
    view: LiveView,
    request: Request,
    disconnect_poll: float = DISCONNECT_POLL_SECONDS,
) -> AsyncIterator[str]:
    """
    Stream the view's frames until the client goes away.
    Each frame is raced against a disconnect watcher, so a dropped client
    releases its subscription and ticker within one poll interval rather than
    at the next frame.
    """
    try:
        await view.start()
    except StoreError as e:
        yield f"event: error\ndata: {json.dumps({'error': e.message})}\n\n"
        await view.stop()
        return
    frames = view.frames()
    watcher = asyncio.ensure_future(_wait_for_disconnect(request, disconnect_poll))
    pending = None
    try:
        while True:
            pending = asyncio.ensure_future(frames.__anext__())
            done, _ = await asyncio.wait({pending, watcher}, return_when=asyncio.FIRST_COMPLETED)
            if watcher in done:
                break
            frame, pending = pending.result(), None
            yield frame_to_event(frame)
    finally:
        for task in (pending, watcher):
            if task is not None:
                task.cancel()
        await asyncio.gather(*(t for t in (pending, watcher) if t is not None), return_exceptions=True)
        await frames.aclose()
        await view.stop()
