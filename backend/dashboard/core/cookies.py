from __future__ import annotations

from fastapi import Response

from dashboard.core.settings import get_settings


def session_cookie_name() -> str:
    return get_settings().site_cookie_name


def state_cookie_name() -> str:
    return f"{get_settings().site_cookie_name}-sk"


def set_session_cookie(resp: Response, token: str) -> None:
    settings = get_settings()
    resp.set_cookie(
        key=session_cookie_name(),
        value=token,
        max_age=settings.session_cookie_max_age,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def set_state_cookie(resp: Response, state_key: str) -> None:
    settings = get_settings()
    resp.set_cookie(
        key=state_cookie_name(),
        value=state_key,
        max_age=settings.oauth2_state_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
