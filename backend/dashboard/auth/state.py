"""Anti-forgery state for the OAuth2 login round-trip.

One random string is split in two: the first half travels to the provider and
comes back in the callback's ``state`` parameter, the second half is kept in a
short-lived cookie and names the store entry holding the first half. Only a
browser that holds the cookie can complete a login it started.
"""

from __future__ import annotations

import logging

from dashboard.auth.errors import StateInvalid
from dashboard.auth.state_store import StateStore
from dashboard.core.security import random_string

logger = logging.getLogger(__name__)

STATE_KEY_PREFIX = "p:a:state"
STATE_LENGTH = 32
DEFAULT_STATE_TTL_SECONDS = 300


def cache_key(state_key: str) -> str:
    return f"{STATE_KEY_PREFIX}{state_key}"


def issue_state(store: StateStore, *, ttl: float = DEFAULT_STATE_TTL_SECONDS) -> tuple[str, str]:
    """Return ``(state, state_key)`` after recording the pair in ``store``."""

    value = random_string(STATE_LENGTH)
    half = STATE_LENGTH // 2
    state, state_key = value[:half], value[half:]
    store.put(cache_key(state_key), state, ttl)
    return state, state_key


def verify_state(store: StateStore, *, state_key: str | None, state: str | None) -> None:
    """Raise StateInvalid unless ``state`` matches the entry recorded for ``state_key``.

    A matching entry is removed in the same step that checks it, so the same
    pair cannot complete a second login even when callbacks race.
    """

    if not state_key:
        raise StateInvalid()
    if not state or not store.consume(cache_key(state_key), state):
        logger.warning("oauth2 state missing, expired or mismatched")
        raise StateInvalid()
