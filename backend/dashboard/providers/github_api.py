from __future__ import annotations

import requests

from dashboard.providers.errors import ProviderApiError

GITHUB_API_URL = "https://api.github.com/"
GITHUB_UPLOAD_URL = "https://uploads.github.com/"


class GitHubApi:
    """Minimal GitHub REST client. Gitee speaks the same API under other hosts."""

    def __init__(self, *, access_token: str, timeout: float = 20):
        self.base_url = GITHUB_API_URL
        self.upload_url = GITHUB_UPLOAD_URL
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "Authorization": f"Bearer {access_token}",
            }
        )

    def get_authenticated_user(self) -> dict:
        data = self._get_json("user")
        if not isinstance(data, dict):
            raise ProviderApiError("Unexpected user payload")
        return data

    def _get_json(self, path: str) -> dict | list:
        resp = self._session.get(f"{self.base_url}{path}", timeout=self._timeout)
        if resp.status_code in (401, 403):
            raise ProviderApiError(f"Forbidden: {resp.status_code}")
        resp.raise_for_status()
        return resp.json()
