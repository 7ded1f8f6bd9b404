from schemas.loan_request import (
    AdminLogin,
    AdminSummary,
    ApplicantSummary,
    LoanRecord,
    LoanRequestView,
    LoanStatus,
    NewLoanRecord,
    ProfileCreate,
    TimeRemaining,
    TopUpCreate,
)

__all__ = [
    "AdminLogin",
    "AdminSummary",
    "ApplicantSummary",
    "LoanRecord",
    "LoanRequestView",
    "LoanStatus",
    "NewLoanRecord",
    "ProfileCreate",
    "TimeRemaining",
    "TopUpCreate",
]
