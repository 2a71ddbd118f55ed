from __future__ import annotations

import hashlib
import secrets
import string
from datetime import datetime

from dashboard.core.time import add_months, utcnow

_ALPHABET = string.ascii_letters + string.digits

RANDOM_STRING_LENGTH = 32


def random_string(length: int = RANDOM_STRING_LENGTH) -> str:
    # Raises OSError/NotImplementedError when the OS has no usable entropy source.
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def new_session_token() -> str:
    # Stored only in cookie (raw); the DB keeps token_hash().
    return random_string(RANDOM_STRING_LENGTH)


def token_hash(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def default_session_expiry(now: datetime | None = None, *, months: int = 2) -> datetime:
    if now is None:
        now = utcnow()
    return add_months(now, months)
