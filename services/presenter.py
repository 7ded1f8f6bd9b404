"""Renders stored records for the admin and applicant surfaces at a given instant."""
from __future__ import annotations

from datetime import datetime
from typing import Iterable

from schemas.loan_request import LoanRecord, LoanRequestView, LoanStatus
from services.deadline import remaining
from services.lifecycle import allowed_actions, repayment_amount
from utils.masking import mask_aadhaar, mask_mobile, mask_pan


def render_record(record: LoanRecord, now: datetime, *, for_admin: bool) -> LoanRequestView:
    # updated_at is the disbursement instant while the record is disbursed
    time_left = remaining(record.updated_at, now) if record.status == LoanStatus.DISBURSED else None
    return LoanRequestView(
        id=record.id,
        applicant_name=record.applicant_name,
        mobile_number=record.mobile_number,
        masked_mobile=mask_mobile(record.mobile_number) if for_admin else None,
        pan_number=record.pan_number if for_admin else mask_pan(record.pan_number),
        aadhaar_number=record.aadhaar_number if for_admin else mask_aadhaar(record.aadhaar_number),
        amount=record.amount,
        repayment_amount=repayment_amount(record.amount),
        purpose=record.purpose,
        status=record.status,
        created_at=record.created_at,
        updated_at=record.updated_at,
        time_remaining=time_left,
        allowed_actions=allowed_actions(record.status) if for_admin else [],
    )


def render_records(records: Iterable[LoanRecord], now: datetime, *, for_admin: bool) -> list[LoanRequestView]:
    return [render_record(r, now, for_admin=for_admin) for r in records]
