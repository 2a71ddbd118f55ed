from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from dashboard.auth.identity import Identity
from dashboard.core.time import utcnow
from dashboard.models.user import User


def get_user_by_login(db: Session, login: str) -> User | None:
    stmt = select(User).where(func.lower(User.login) == login.lower())
    return db.execute(stmt).scalars().first()


def get_user_by_id(db: Session, user_id: uuid.UUID) -> User | None:
    return db.get(User, user_id)


def upsert_user_from_identity(db: Session, identity: Identity) -> User:
    # Flushes only; the caller owns the transaction.
    user = get_user_by_login(db, identity.login)
    if user is None:
        user = User(login=identity.login)
        db.add(user)
    user.login = identity.login
    user.name = identity.name
    user.email = identity.email
    user.avatar_url = identity.avatar_url
    user.profile_url = identity.profile_url
    user.updated_at = utcnow()
    db.flush()
    return user
