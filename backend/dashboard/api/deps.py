from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from dashboard.auth.state_store import StateStore
from dashboard.core.cookies import session_cookie_name
from dashboard.core.security import token_hash
from dashboard.core.time import as_aware_utc, utcnow
from dashboard.db.session import get_db
from dashboard.models.session import Session as DbSession
from dashboard.models.user import User
from dashboard.repos.sessions import get_session_by_token_hash
from dashboard.repos.users import get_user_by_id


@dataclass(frozen=True)
class AdminContext:
    user: User
    session: DbSession


def get_state_store(request: Request) -> StateStore:
    return request.app.state.state_store


def get_admin_ctx(request: Request, db: Session = Depends(get_db)) -> AdminContext:
    raw = request.cookies.get(session_cookie_name())
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    sess = get_session_by_token_hash(db, token_hash(raw))
    if sess is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session")
    if sess.revoked_at is not None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session revoked")
    if as_aware_utc(sess.expires_at) < utcnow():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")

    user = get_user_by_id(db, sess.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid session user")

    return AdminContext(user=user, session=sess)
