from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qsl

import requests


@dataclass(frozen=True)
class AccessToken:
    access_token: str
    token_type: str
    scope: str


def exchange_code(
    *,
    token_url: str,
    client_id: str,
    client_secret: str,
    code: str,
    redirect_uri: str,
    timeout: float = 15,
) -> AccessToken:
    resp = requests.post(
        token_url,
        headers={"Accept": "application/json"},
        data={
            "grant_type": "authorization_code",
            "client_id": client_id,
            "client_secret": client_secret,
            "code": code,
            "redirect_uri": redirect_uri,
        },
        timeout=timeout,
    )
    resp.raise_for_status()
    content_type = resp.headers.get("Content-Type", "")
    if "application/x-www-form-urlencoded" in content_type or "text/plain" in content_type:
        data = dict(parse_qsl(resp.text))
    else:
        data = resp.json()
    if not isinstance(data, dict):
        raise ValueError("Token exchange failed: unexpected response")
    if not data.get("access_token"):
        detail = data.get("error_description") or data.get("error") or "no access_token in response"
        raise ValueError(f"Token exchange failed: {detail}")
    return AccessToken(
        access_token=data["access_token"],
        token_type=data.get("token_type") or "Bearer",
        scope=data.get("scope") or "",
    )
