from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from api.deps import MSG_STORE_UNAVAILABLE, get_admin_credentials, get_store, get_synchronizer, require_admin
from api.streaming import SSE_MEDIA_TYPE, live_events
from config import settings
from exceptions import AuthenticationError, InvalidTransitionError, RecordNotFoundError, StoreError
from schemas.loan_request import AdminLogin
from services.admin_actions import run_action
from services.auth import AdminCredentials, authenticate
from services.lifecycle import ADMIN_ACTIONS
from services.live_view import LiveView
from services.presenter import render_record, render_records
from services.store import RecordStore
from services.summary import admin_summary
from services.sync import ViewScope, ViewSynchronizer

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/login")
async def login(body: AdminLogin, expected: AdminCredentials = Depends(get_admin_credentials)):
    if not body.email.strip():
        raise HTTPException(status_code=422, detail="Please enter your email")
    if not body.password.strip():
        raise HTTPException(status_code=422, detail="Please enter your password")
    try:
        authenticate(body.email, body.password, expected)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail={"reason": e.reason, "message": e.message})
    return {"authenticated": True}


@router.get("/requests", dependencies=[Depends(require_admin)])
async def list_requests(synchronizer: ViewSynchronizer = Depends(get_synchronizer)):
    try:
        snapshot = await synchronizer.fetch(ViewScope.all())
    except StoreError:
        raise HTTPException(status_code=503, detail=MSG_STORE_UNAVAILABLE)
    now = datetime.now(timezone.utc)
    return [v.model_dump(mode="json", by_alias=True) for v in render_records(snapshot.records, now, for_admin=True)]


@router.get("/summary", dependencies=[Depends(require_admin)])
async def get_summary(store: RecordStore = Depends(get_store)):
    try:
        records = await store.query_all()
    except StoreError:
        raise HTTPException(status_code=503, detail=MSG_STORE_UNAVAILABLE)
    return admin_summary(records).model_dump(mode="json", by_alias=True)


@router.get("/requests/stream", dependencies=[Depends(require_admin)])
async def stream_requests(request: Request, synchronizer: ViewSynchronizer = Depends(get_synchronizer)):
    view = LiveView(
        synchronizer,
        ViewScope.all(),
        for_admin=True,
        tick_seconds=settings.countdown_refresh_seconds,
    )
    return StreamingResponse(live_events(view, request), media_type=SSE_MEDIA_TYPE)


@router.post("/requests/{request_id}/{action}", dependencies=[Depends(require_admin)])
async def apply_action(request_id: str, action: str, store: RecordStore = Depends(get_store)):
    if action not in ADMIN_ACTIONS:
        raise HTTPException(status_code=404, detail=f"Unknown action '{action}'")
    try:
        record = await run_action(store, request_id, action)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail={"message": e.message, **e.details})
    except StoreError:
        raise HTTPException(status_code=503, detail=MSG_STORE_UNAVAILABLE)
    view = render_record(record, datetime.now(timezone.utc), for_admin=True)
    return view.model_dump(mode="json", by_alias=True)
