"""Shared utilities for the backend."""
from utils.case import to_camel_key
from utils.masking import mask_aadhaar, mask_mobile, mask_pan

__all__ = [
    "to_camel_key",
    "mask_aadhaar",
    "mask_mobile",
    "mask_pan",
]
