from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from dashboard.api.deps import get_state_store
from dashboard.auth.errors import LoginError
from dashboard.auth.flow import complete_login, start_login
from dashboard.auth.state_store import StateStore
from dashboard.core.cookies import set_session_cookie, set_state_cookie, state_cookie_name
from dashboard.core.settings import get_settings
from dashboard.db.session import get_db
from dashboard.services.sessions import persist_admin_session
from dashboard.web.pages import render_error, render_redirect

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oauth2", tags=["oauth2"])


def _host(request: Request) -> str:
    return request.headers.get("host") or request.url.netloc


def _error_page(request: Request, e: LoginError) -> HTMLResponse:
    logger.warning("oauth2 login failed stage=%s error=%s", e.stage.value, type(e).__name__)
    return render_error(request, title=e.title, message=e.message)


@router.get("/login", response_class=HTMLResponse)
def login(request: Request, store: StateStore = Depends(get_state_store)) -> HTMLResponse:
    settings = get_settings()
    try:
        start = start_login(settings, store, host=_host(request), referer=request.headers.get("referer"))
    except LoginError as e:
        return _error_page(request, e)

    resp = render_redirect(request, start.authorize_url)
    set_state_cookie(resp, start.state_key)
    return resp


@router.get("/callback", response_class=HTMLResponse)
def callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: Session = Depends(get_db),
    store: StateStore = Depends(get_state_store),
) -> HTMLResponse:
    settings = get_settings()
    try:
        issued = complete_login(
            settings,
            store,
            host=_host(request),
            referer=request.headers.get("referer"),
            state_key=request.cookies.get(state_cookie_name()),
            state=state,
            code=code,
            persist=lambda identity, session: persist_admin_session(db, identity, session),
        )
    except LoginError as e:
        return _error_page(request, e)

    resp = render_redirect(request, "/")
    set_session_cookie(resp, issued.token)
    return resp
