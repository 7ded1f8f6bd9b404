"""Error taxonomy for the loan desk core.

Every error is scoped to a single operation; none of them is fatal to the
process. The HTTP layer maps them to status codes in the routers.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class LoanDeskError(Exception):
    """Base exception for all loan desk errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


@dataclass(frozen=True)
class FieldError:
    """One malformed input field."""

    field: str
    message: str


class ValidationFailed(LoanDeskError):
    """Raised when one or more input fields are malformed. Nothing is persisted."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        fields = ", ".join(e.field for e in self.errors)
        super().__init__(f"Invalid input: {fields}", {"fields": [e.field for e in self.errors]})

    @property
    def fields(self) -> list[str]:
        return [e.field for e in self.errors]


class InvalidTransitionError(LoanDeskError):
    """Raised when a status change does not follow the lifecycle edges."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move a '{current}' request to '{target}'",
            {"current": current, "target": target},
        )


class StoreError(LoanDeskError):
    """Read or write failure against the record store. Retryable by the caller."""
    pass


class RecordNotFoundError(StoreError):
    """Raised when a record id does not exist in the store."""

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"Loan request '{record_id}' not found", {"id": record_id})


class IntakeError(LoanDeskError):
    """Base class for failures while creating a new request."""
    pass


class StoreUnavailableError(IntakeError):
    """The insert failed after validation passed; the submission was not saved."""

    def __init__(self, cause: Optional[BaseException] = None):
        super().__init__("Could not save the request, please try again")
        self.__cause__ = cause


class ApplicantNotFoundError(IntakeError):
    """A top-up was requested for a mobile number with no profile."""

    def __init__(self, mobile_number: str):
        self.mobile_number = mobile_number
        super().__init__("No profile found for this mobile number", {"mobile_number": mobile_number})


class AuthenticationError(LoanDeskError):
    """Administrator credential check failed."""

    INVALID_PASSWORD = "invalid_password"
    UNAUTHORIZED = "unauthorized"

    def __init__(self, reason: str):
        self.reason = reason
        message = "Invalid password" if reason == self.INVALID_PASSWORD else "Only the administrator can access this page"
        super().__init__(message, {"reason": reason})
