"""Dashboard totals for the admin and applicant surfaces."""
from __future__ import annotations

from typing import Iterable

from schemas.loan_request import AdminSummary, ApplicantSummary, LoanRecord, LoanStatus


def admin_summary(records: Iterable[LoanRecord]) -> AdminSummary:
    summary = AdminSummary()
    for r in records:
        summary.total += 1
        status = LoanStatus(r.status)
        setattr(summary, status.value, getattr(summary, status.value) + 1)
        summary.total_amount += r.amount
        if status in (LoanStatus.DISBURSED, LoanStatus.COMPLETED):
            summary.disbursed_amount += r.amount
    return summary


def applicant_summary(records: Iterable[LoanRecord]) -> ApplicantSummary:
    summary = ApplicantSummary()
    for r in records:
        summary.total_applied += r.amount
        # completed loans are repaid, so only open disbursals count here
        if r.status == LoanStatus.DISBURSED:
            summary.total_disbursed += r.amount
    return summary
