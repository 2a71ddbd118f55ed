from __future__ import annotations

import requests

from dashboard.providers.errors import ProviderApiError


class GiteaApi:
    def __init__(self, *, endpoint: str, access_token: str, timeout: float = 20):
        if not endpoint:
            raise ProviderApiError("Gitea endpoint is not configured")
        self.endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Authorization": f"token {access_token}",
            }
        )

    def get_my_user_info(self) -> dict:
        resp = self._session.get(f"{self.endpoint}/api/v1/user", timeout=self._timeout)
        if resp.status_code in (401, 403):
            raise ProviderApiError(f"Forbidden: {resp.status_code}")
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ProviderApiError("Unexpected user payload")
        return data
