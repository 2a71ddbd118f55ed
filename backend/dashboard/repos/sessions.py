from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from dashboard.core.time import utcnow
from dashboard.models.session import Session as DbSession


def create_session(
    db: Session,
    *,
    user_id: uuid.UUID,
    token_hash: str,
    expires_at: datetime,
) -> DbSession:
    s = DbSession(
        user_id=user_id,
        token_hash=token_hash,
        expires_at=expires_at,
    )
    db.add(s)
    db.flush()
    return s


def get_session_by_token_hash(db: Session, token_hash: str) -> DbSession | None:
    stmt = select(DbSession).where(DbSession.token_hash == token_hash)
    return db.execute(stmt).scalars().first()


def revoke_sessions_for_user(db: Session, user_id: uuid.UUID) -> None:
    stmt = (
        update(DbSession)
        .where(DbSession.user_id == user_id, DbSession.revoked_at.is_(None))
        .values(revoked_at=utcnow())
    )
    db.execute(stmt)
    db.flush()
