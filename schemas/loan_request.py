from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from utils.case import to_camel_key


class LoanStatus(str, Enum):
    """Lifecycle status of a loan request, in lifecycle order."""
    PENDING = "pending"
    APPROVED = "approved"
    DISBURSED = "disbursed"
    COMPLETED = "completed"     # Administrator confirmed repayment received
    REJECTED = "rejected"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel_key, populate_by_name=True)


class LoanRecord(CamelModel):
    """A stored loan request, detached from the ORM session."""

    model_config = ConfigDict(alias_generator=to_camel_key, populate_by_name=True, from_attributes=True)

    id: str
    applicant_name: str
    mobile_number: str
    pan_number: str
    aadhaar_number: str
    amount: float = 0
    purpose: Optional[str] = None
    status: LoanStatus = LoanStatus.PENDING
    created_at: datetime
    updated_at: datetime


class NewLoanRecord(BaseModel):
    """Fields handed to the store on insert; status always starts pending."""
    applicant_name: str
    mobile_number: str
    pan_number: str
    aadhaar_number: str
    amount: float = 0
    purpose: Optional[str] = None


class ProfileCreate(CamelModel):
    """Raw applicant input for the initial profile. Checked by intake, not here."""
    applicant_name: str = ""
    mobile_number: str = ""
    pan_number: str = ""
    aadhaar_number: str = ""


class TopUpCreate(CamelModel):
    mobile_number: str = ""
    amount: Union[float, str, None] = None
    purpose: Optional[str] = None


class TimeRemaining(BaseModel):
    days: int
    hours: int
    minutes: int


class AdminLogin(BaseModel):
    email: str = ""
    password: str = ""


class LoanRequestView(CamelModel):
    """A record as rendered for one of the surfaces at a given instant."""
    id: str
    applicant_name: str
    mobile_number: str
    masked_mobile: Optional[str] = None
    pan_number: str
    aadhaar_number: str
    amount: float
    repayment_amount: float
    purpose: Optional[str] = None
    status: LoanStatus
    created_at: datetime
    updated_at: datetime
    time_remaining: Optional[TimeRemaining] = None
    allowed_actions: list[str] = Field(default_factory=list)


class AdminSummary(CamelModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    disbursed: int = 0
    rejected: int = 0
    completed: int = 0
    total_amount: float = 0
    disbursed_amount: float = 0


class ApplicantSummary(CamelModel):
    total_applied: float = 0
    total_disbursed: float = 0
