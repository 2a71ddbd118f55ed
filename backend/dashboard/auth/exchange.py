from __future__ import annotations

import logging

import requests

from dashboard.auth.errors import ExchangeFailed
from dashboard.auth.registry import ProviderConfig
from dashboard.providers import oauth2
from dashboard.providers.oauth2 import AccessToken

logger = logging.getLogger(__name__)


def exchange_token(config: ProviderConfig, code: str | None, *, timeout: float = 15) -> AccessToken:
    """Trade an authorization code for an access token. Never retried."""

    if not code:
        raise ExchangeFailed("Missing authorization code")
    try:
        return oauth2.exchange_code(
            token_url=config.token_url,
            client_id=config.client_id,
            client_secret=config.client_secret,
            code=code,
            redirect_uri=config.redirect_url,
            timeout=timeout,
        )
    except (requests.RequestException, ValueError) as e:
        logger.warning("token exchange failed provider=%s error=%s", config.kind.value, type(e).__name__)
        raise ExchangeFailed() from e
