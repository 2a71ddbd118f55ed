from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from dashboard.core.time import as_aware_utc, utcnow
from dashboard.models.oauth_state import OAuthState


def put_state(db: Session, *, key: str, value: str, expires_at: datetime) -> OAuthState:
    row = db.get(OAuthState, key)
    if row is None:
        row = OAuthState(key=key, value=value, expires_at=expires_at)
        db.add(row)
    else:
        row.value = value
        row.expires_at = expires_at
    db.commit()
    db.refresh(row)
    return row


def get_state(db: Session, *, key: str) -> OAuthState | None:
    row = db.execute(select(OAuthState).where(OAuthState.key == key)).scalars().first()
    if row is None:
        return None
    if as_aware_utc(row.expires_at) <= utcnow():
        delete_state(db, key=key)
        return None
    return row


def delete_state(db: Session, *, key: str) -> None:
    db.execute(delete(OAuthState).where(OAuthState.key == key))
    db.commit()


def delete_expired_states(db: Session) -> None:
    db.execute(delete(OAuthState).where(OAuthState.expires_at < utcnow()))
    db.commit()


def consume_state(db: Session, *, key: str, value: str) -> bool:
    # Single conditional DELETE so two callbacks cannot both claim the entry.
    stmt = delete(OAuthState).where(
        OAuthState.key == key,
        OAuthState.value == value,
        OAuthState.expires_at > utcnow(),
    )
    result = db.execute(stmt)
    db.commit()
    return result.rowcount == 1
