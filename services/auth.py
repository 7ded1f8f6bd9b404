"""Administrator credential check. A gate in front of the admin routes, not a security boundary."""
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass

from exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminCredentials:
    email: str
    password: str


def authenticate(email: str, password: str, expected: AdminCredentials) -> None:
    """
    Raise AuthenticationError unless the pair matches the expected credentials.
    Email is compared trimmed and case-insensitively; password exactly.
    """
    email_ok = (email or "").strip().lower() == expected.email.strip().lower()
    password_ok = secrets.compare_digest((password or "").encode(), expected.password.encode())
    if email_ok and password_ok:
        return
    reason = AuthenticationError.INVALID_PASSWORD if email_ok else AuthenticationError.UNAUTHORIZED
    logger.warning("Admin login rejected: %s", reason)
    raise AuthenticationError(reason)
