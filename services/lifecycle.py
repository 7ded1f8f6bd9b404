"""
Loan request lifecycle: valid statuses, allowed transitions, and the side effect
of each transition.

    pending -> approved -> disbursed -> completed
    pending -> rejected

rejected and completed are terminal. A successful transition changes the status
and stamps the current instant as updated_at; nothing else.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Union

from exceptions import InvalidTransitionError
from schemas.loan_request import LoanRecord, LoanStatus

# Flat surcharge added to the disbursed amount at repayment time
REPAYMENT_SURCHARGE = 10

ALLOWED_TRANSITIONS: dict[LoanStatus, frozenset[LoanStatus]] = {
    LoanStatus.PENDING: frozenset({LoanStatus.APPROVED, LoanStatus.REJECTED}),
    LoanStatus.APPROVED: frozenset({LoanStatus.DISBURSED}),
    LoanStatus.DISBURSED: frozenset({LoanStatus.COMPLETED}),
    LoanStatus.REJECTED: frozenset(),
    LoanStatus.COMPLETED: frozenset(),
}

# Administrator actions, keyed by the name the admin surface exposes
ADMIN_ACTIONS: dict[str, LoanStatus] = {
    "approve": LoanStatus.APPROVED,
    "reject": LoanStatus.REJECTED,
    "mark-disbursed": LoanStatus.DISBURSED,
    "mark-completed": LoanStatus.COMPLETED,
}


@dataclass(frozen=True)
class TransitionResult:
    """Fields the store must persist for a transition."""
    record_id: str
    previous: LoanStatus
    status: LoanStatus
    updated_at: datetime


def allowed_next_statuses(current: Union[LoanStatus, str]) -> frozenset[LoanStatus]:
    return ALLOWED_TRANSITIONS[LoanStatus(current)]


def is_terminal(status: Union[LoanStatus, str]) -> bool:
    return not allowed_next_statuses(status)


def allowed_actions(current: Union[LoanStatus, str]) -> list[str]:
    """Admin action names available from the current status, in table order."""
    targets = allowed_next_statuses(current)
    return [name for name, target in ADMIN_ACTIONS.items() if target in targets]


def apply_transition(
    record: LoanRecord,
    target: Union[LoanStatus, str],
    now: Optional[datetime] = None,
) -> TransitionResult:
    """
    Validate a status change for one record.
    Raises InvalidTransitionError when target is not reachable from the record's status.
    """
    current = LoanStatus(record.status)
    try:
        target = LoanStatus(target)
    except ValueError:
        raise InvalidTransitionError(current.value, str(target)) from None
    if target not in allowed_next_statuses(current):
        raise InvalidTransitionError(current.value, target.value)
    return TransitionResult(
        record_id=record.id,
        previous=current,
        status=target,
        updated_at=now or datetime.now(timezone.utc),
    )


def repayment_amount(amount: float) -> float:
    """Amount the applicant repays after disbursement. Computed, never stored."""
    return amount + REPAYMENT_SURCHARGE
