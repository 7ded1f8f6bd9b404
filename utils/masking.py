"""Masking of identity fields shown on the applicant and admin surfaces."""


def mask_mobile(mobile: str) -> str:
    """'9876543210' -> '****3210'."""
    if not mobile or len(mobile) < 4:
        return "****"
    return "****" + mobile[-4:]


def mask_pan(pan: str) -> str:
    """'ABCDE1234F' -> 'AB******4F'."""
    if not pan or len(pan) < 4:
        return "****"
    return pan[:2] + "*" * (len(pan) - 4) + pan[-2:]


def mask_aadhaar(aadhaar: str) -> str:
    """Keep only the last four digits."""
    if not aadhaar or len(aadhaar) < 4:
        return "****"
    return "*" * (len(aadhaar) - 4) + aadhaar[-4:]
