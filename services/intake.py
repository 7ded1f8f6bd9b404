"""
Request intake: validates and normalizes applicant input, then hands the new
record to the store. Every record starts pending.

Two paths:
- initial profile: identity fields entered by the applicant, amount 0
- top-up: identity copied from the latest record for the mobile number,
  only amount and purpose supplied
"""
from __future__ import annotations

import logging
import re
from typing import Any, Optional, Union

from exceptions import (
    ApplicantNotFoundError,
    FieldError,
    StoreError,
    StoreUnavailableError,
    ValidationFailed,
)
from schemas.loan_request import LoanRecord, NewLoanRecord, ProfileCreate, TopUpCreate
from services.store import RecordStore

logger = logging.getLogger(__name__)

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
_NON_DIGITS = re.compile(r"\D")


def _digits(value: Any) -> str:
    return _NON_DIGITS.sub("", str(value or ""))


def _check_mobile(value: Any, errors: list[FieldError]) -> str:
    mobile = _digits(value)
    if len(mobile) != 10:
        errors.append(FieldError("mobile_number", "Please enter a valid 10-digit mobile number"))
    return mobile


def _parse_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(str(value).strip())
    except ValueError:
        return None
    # rejects nan and inf along with non-positive values
    if not 0 < amount < float("inf"):
        return None
    return amount


def validate_profile(data: Union[ProfileCreate, dict]) -> NewLoanRecord:
    """Check every identity field; raise ValidationFailed naming each bad one."""
    if isinstance(data, dict):
        data = ProfileCreate.model_validate(data)
    errors: list[FieldError] = []

    name = (data.applicant_name or "").strip()
    if not name:
        errors.append(FieldError("applicant_name", "Please enter your name"))

    mobile = _check_mobile(data.mobile_number, errors)

    pan = (data.pan_number or "").strip().upper()
    if not PAN_PATTERN.match(pan):
        errors.append(FieldError("pan_number", "Please enter a valid PAN number (e.g., ABCDE1234F)"))

    aadhaar = _digits(data.aadhaar_number)
    if len(aadhaar) != 12:
        errors.append(FieldError("aadhaar_number", "Please enter a valid 12-digit Aadhaar number"))

    if errors:
        raise ValidationFailed(errors)
    return NewLoanRecord(
        applicant_name=name,
        mobile_number=mobile,
        pan_number=pan,
        aadhaar_number=aadhaar,
        amount=0,
        purpose=None,
    )


def validate_top_up(data: Union[TopUpCreate, dict]) -> tuple[str, float, Optional[str]]:
    """Return (mobile, amount, purpose) for a top-up request."""
    if isinstance(data, dict):
        data = TopUpCreate.model_validate(data)
    errors: list[FieldError] = []
    mobile = _check_mobile(data.mobile_number, errors)
    amount = _parse_amount(data.amount)
    if amount is None:
        errors.append(FieldError("amount", "Please enter a valid amount"))
    if errors:
        raise ValidationFailed(errors)
    purpose = (data.purpose or "").strip() or None
    return mobile, amount, purpose


class RequestIntake:
    def __init__(self, store: RecordStore):
        self._store = store

    async def create(self, fields: NewLoanRecord) -> LoanRecord:
        try:
            return await self._store.insert(fields)
        except StoreError as e:
            logger.error("Submission for ****%s was not saved: %s", fields.mobile_number[-4:], e)
            raise StoreUnavailableError(e) from e

    async def submit_profile(self, data: Union[ProfileCreate, dict]) -> LoanRecord:
        return await self.create(validate_profile(data))

    async def submit_top_up(self, data: Union[TopUpCreate, dict]) -> LoanRecord:
        mobile, amount, purpose = validate_top_up(data)
        try:
            history = await self._store.query_by_mobile(mobile)
        except StoreError as e:
            raise StoreUnavailableError(e) from e
        if not history:
            raise ApplicantNotFoundError(mobile)
        # newest first
        latest = history[0]
        fields = NewLoanRecord(
            applicant_name=latest.applicant_name,
            mobile_number=mobile,
            pan_number=latest.pan_number,
            aadhaar_number=latest.aadhaar_number,
            amount=amount,
            purpose=purpose,
        )
        return await self.create(fields)
