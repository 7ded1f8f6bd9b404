from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from api.deps import MSG_STORE_UNAVAILABLE, get_intake, get_store, get_synchronizer
from api.streaming import SSE_MEDIA_TYPE, live_events
from config import settings
from exceptions import (
    ApplicantNotFoundError,
    RecordNotFoundError,
    StoreError,
    StoreUnavailableError,
    ValidationFailed,
)
from schemas.loan_request import LoanRecord, LoanStatus, ProfileCreate, TopUpCreate
from services.deadline import remaining
from services.intake import RequestIntake
from services.live_view import LiveView
from services.presenter import render_record, render_records
from services.store import RecordStore
from services.summary import applicant_summary
from services.sync import ViewScope, ViewSynchronizer

router = APIRouter(prefix="/api", tags=["applicant"])


def _validation_error(e: ValidationFailed) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={
            "message": e.message,
            "errors": [{"field": err.field, "message": err.message} for err in e.errors],
        },
    )


def _require_mobile(mobile: str) -> str:
    digits = "".join(ch for ch in mobile if ch.isdigit())
    if len(digits) != 10:
        raise HTTPException(status_code=422, detail="Please enter a valid 10-digit mobile number")
    return digits


def _created_response(record: LoanRecord) -> dict[str, Any]:
    view = render_record(record, datetime.now(timezone.utc), for_admin=False)
    return view.model_dump(mode="json", by_alias=True)


@router.post("/profiles", status_code=201)
async def create_profile(body: ProfileCreate, intake: RequestIntake = Depends(get_intake)):
    try:
        record = await intake.submit_profile(body)
    except ValidationFailed as e:
        raise _validation_error(e)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return _created_response(record)


@router.post("/requests", status_code=201)
async def create_top_up(body: TopUpCreate, intake: RequestIntake = Depends(get_intake)):
    try:
        record = await intake.submit_top_up(body)
    except ValidationFailed as e:
        raise _validation_error(e)
    except ApplicantNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StoreUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return _created_response(record)


@router.get("/requests")
async def list_my_requests(
    mobile: str = Query(..., description="10-digit mobile number"),
    synchronizer: ViewSynchronizer = Depends(get_synchronizer),
):
    scope = ViewScope.by_mobile(_require_mobile(mobile))
    try:
        snapshot = await synchronizer.fetch(scope)
    except StoreError:
        raise HTTPException(status_code=503, detail=MSG_STORE_UNAVAILABLE)
    now = datetime.now(timezone.utc)
    return {
        "records": [v.model_dump(mode="json", by_alias=True) for v in render_records(snapshot.records, now, for_admin=False)],
        "summary": applicant_summary(snapshot.records).model_dump(mode="json", by_alias=True),
    }


@router.get("/requests/stream")
async def stream_my_requests(
    request: Request,
    mobile: str = Query(..., description="10-digit mobile number"),
    synchronizer: ViewSynchronizer = Depends(get_synchronizer),
):
    view = LiveView(
        synchronizer,
        ViewScope.by_mobile(_require_mobile(mobile)),
        for_admin=False,
        tick_seconds=settings.countdown_refresh_seconds,
    )
    return StreamingResponse(live_events(view, request), media_type=SSE_MEDIA_TYPE)


@router.get("/requests/{request_id}/countdown")
async def get_countdown(request_id: str, store: RecordStore = Depends(get_store)):
    try:
        record = await store.get(request_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StoreError:
        raise HTTPException(status_code=503, detail=MSG_STORE_UNAVAILABLE)
    if record.status != LoanStatus.DISBURSED:
        return None
    left = remaining(record.updated_at, datetime.now(timezone.utc))
    return left.model_dump() if left else None
