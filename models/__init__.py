from models.loan_request import LoanRequest

__all__ = [
    "LoanRequest",
]
