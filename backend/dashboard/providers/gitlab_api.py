from __future__ import annotations

import requests

from dashboard.providers.errors import ProviderApiError

GITLAB_API_URL = "https://gitlab.com/api/v4/"
JIHULAB_API_URL = "https://jihulab.com/api/v4/"


class GitLabApi:
    def __init__(self, *, access_token: str, base_url: str = GITLAB_API_URL, timeout: float = 20):
        if not base_url.endswith("/"):
            base_url += "/"
        self.base_url = base_url
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {access_token}"})

    def current_user(self) -> dict:
        resp = self._session.get(f"{self.base_url}user", timeout=self._timeout)
        if resp.status_code in (401, 403):
            raise ProviderApiError(f"Forbidden: {resp.status_code}")
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ProviderApiError("Unexpected user payload")
        return data
