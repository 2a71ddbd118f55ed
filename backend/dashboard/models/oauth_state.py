from __future__ import annotations

from datetime import datetime

from dashboard.core.time import utcnow

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from dashboard.db.base import Base


class OAuthState(Base):
    __tablename__ = "oauth_states"

    # Namespaced cache key, e.g. "p:a:state<stateKey>".
    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(String(128), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, nullable=False)
