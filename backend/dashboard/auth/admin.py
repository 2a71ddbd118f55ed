from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from dashboard.auth.errors import NotAdministrator, TokenGenerationFailed
from dashboard.auth.identity import Identity
from dashboard.core.security import default_session_expiry, new_session_token
from dashboard.core.time import utcnow


@dataclass(frozen=True)
class IssuedSession:
    login: str
    token: str
    expires_at: datetime


def is_admin(login: str, allow_list: str) -> bool:
    """Case-insensitive membership test against a comma-separated list of logins."""

    if not login:
        return False
    wanted = login.casefold()
    for entry in allow_list.split(","):
        entry = entry.strip()
        if entry and entry.casefold() == wanted:
            return True
    return False


def authorize(identity: Identity, allow_list: str) -> None:
    if not is_admin(identity.login, allow_list):
        raise NotAdministrator()


def issue_session(identity: Identity, *, now: datetime | None = None, months: int = 2) -> IssuedSession:
    if now is None:
        now = utcnow()
    try:
        token = new_session_token()
    except (OSError, NotImplementedError) as e:
        raise TokenGenerationFailed() from e
    return IssuedSession(
        login=identity.login,
        token=token,
        expires_at=default_session_expiry(now, months=months),
    )
