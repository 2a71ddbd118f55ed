from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dashboard.auth.admin import IssuedSession
from dashboard.auth.errors import SessionPersistFailed
from dashboard.auth.identity import Identity
from dashboard.core.security import token_hash
from dashboard.repos.sessions import create_session, revoke_sessions_for_user
from dashboard.repos.users import upsert_user_from_identity

logger = logging.getLogger(__name__)


def persist_admin_session(db: Session, identity: Identity, issued: IssuedSession) -> None:
    """Store the user and the new session in one transaction.

    Either the new session replaces the old ones or nothing changes.
    """

    try:
        user = upsert_user_from_identity(db, identity)
        # A new login supersedes whatever session the admin held before.
        revoke_sessions_for_user(db, user.id)
        create_session(
            db,
            user_id=user.id,
            token_hash=token_hash(issued.token),
            expires_at=issued.expires_at,
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("session persistence failed login=%s error=%s", identity.login, type(e).__name__)
        raise SessionPersistFailed() from e
