"""Login and callback orchestration.

The callback walks a fixed sequence of stages (see FlowStage). Each stage
either returns its result or raises a LoginError, so the first failure ends
the attempt and nothing after it runs. No stage touches persistent storage
before the session is issued.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from dashboard.auth.admin import IssuedSession, authorize, issue_session
from dashboard.auth.errors import StateGenerationFailed
from dashboard.auth.exchange import exchange_token
from dashboard.auth.identity import Identity, resolve_identity
from dashboard.auth.registry import authorize_url, build_provider_config
from dashboard.auth.state import issue_state, verify_state
from dashboard.auth.state_store import StateStore
from dashboard.core.settings import Settings

logger = logging.getLogger(__name__)

PersistSession = Callable[[Identity, IssuedSession], None]


@dataclass(frozen=True)
class LoginStart:
    authorize_url: str
    state_key: str


def start_login(settings: Settings, store: StateStore, *, host: str, referer: str | None) -> LoginStart:
    config = build_provider_config(settings, host=host, referer=referer)
    try:
        state, state_key = issue_state(store, ttl=settings.oauth2_state_ttl_seconds)
    except (OSError, NotImplementedError) as e:
        raise StateGenerationFailed() from e
    return LoginStart(authorize_url=authorize_url(config, state=state), state_key=state_key)


def complete_login(
    settings: Settings,
    store: StateStore,
    *,
    host: str,
    referer: str | None,
    state_key: str | None,
    state: str | None,
    code: str | None,
    persist: PersistSession,
) -> IssuedSession:
    verify_state(store, state_key=state_key, state=state)

    config = build_provider_config(settings, host=host, referer=referer)
    token = exchange_token(config, code, timeout=settings.http_timeout_seconds)
    identity = resolve_identity(token.access_token, config, timeout=settings.http_timeout_seconds)
    authorize(identity, settings.oauth2_admin)

    issued = issue_session(identity, months=settings.session_lifetime_months)
    persist(identity, issued)
    logger.info("admin login succeeded login=%s provider=%s", identity.login, config.kind.value)
    return issued
