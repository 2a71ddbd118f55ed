"""Ask the provider who an access token belongs to, and normalize the answer."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import requests

from dashboard.auth.errors import IdentityFetchFailed
from dashboard.auth.registry import ProviderConfig, ProviderKind
from dashboard.providers.errors import ProviderApiError
from dashboard.providers.gitea_api import GiteaApi
from dashboard.providers.github_api import GitHubApi
from dashboard.providers.gitlab_api import GITLAB_API_URL, JIHULAB_API_URL, GitLabApi

logger = logging.getLogger(__name__)

GITEE_API_URL = "https://gitee.com/api/v5/"
GITEE_UPLOAD_URL = "https://gitee.com/api/v5/uploads/"


@dataclass(frozen=True)
class Identity:
    login: str
    name: str = ""
    email: str = ""
    avatar_url: str = ""
    profile_url: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


def _s(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _from_github(data: dict) -> Identity:
    return Identity(
        login=_s(data.get("login")),
        name=_s(data.get("name")),
        email=_s(data.get("email")),
        avatar_url=_s(data.get("avatar_url")),
        profile_url=_s(data.get("html_url")),
        raw=data,
    )


def _from_gitlab(data: dict) -> Identity:
    return Identity(
        login=_s(data.get("username")),
        name=_s(data.get("name")),
        email=_s(data.get("email")),
        avatar_url=_s(data.get("avatar_url")),
        profile_url=_s(data.get("web_url")),
        raw=data,
    )


def _from_gitea(data: dict, *, endpoint: str) -> Identity:
    login = _s(data.get("login")) or _s(data.get("username"))
    return Identity(
        login=login,
        name=_s(data.get("full_name")),
        email=_s(data.get("email")),
        avatar_url=_s(data.get("avatar_url")),
        profile_url=f"{endpoint}/{login}" if login else "",
        raw=data,
    )


def _resolve_github(access_token: str, config: ProviderConfig, timeout: float) -> Identity:
    api = GitHubApi(access_token=access_token, timeout=timeout)
    return _from_github(api.get_authenticated_user())


def _resolve_gitee(access_token: str, config: ProviderConfig, timeout: float) -> Identity:
    api = GitHubApi(access_token=access_token, timeout=timeout)
    api.base_url = GITEE_API_URL
    api.upload_url = GITEE_UPLOAD_URL
    return _from_github(api.get_authenticated_user())


def _resolve_gitlab(access_token: str, config: ProviderConfig, timeout: float) -> Identity:
    api = GitLabApi(access_token=access_token, base_url=GITLAB_API_URL, timeout=timeout)
    return _from_gitlab(api.current_user())


def _resolve_jihulab(access_token: str, config: ProviderConfig, timeout: float) -> Identity:
    api = GitLabApi(access_token=access_token, base_url=JIHULAB_API_URL, timeout=timeout)
    return _from_gitlab(api.current_user())


def _resolve_gitea(access_token: str, config: ProviderConfig, timeout: float) -> Identity:
    api = GiteaApi(endpoint=config.endpoint, access_token=access_token, timeout=timeout)
    return _from_gitea(api.get_my_user_info(), endpoint=api.endpoint)


Resolver = Callable[[str, ProviderConfig, float], Identity]

RESOLVERS: dict[ProviderKind, Resolver] = {
    ProviderKind.GITHUB: _resolve_github,
    ProviderKind.GITEE: _resolve_gitee,
    ProviderKind.GITLAB: _resolve_gitlab,
    ProviderKind.JIHULAB: _resolve_jihulab,
    ProviderKind.GITEA: _resolve_gitea,
}


def resolve_identity(access_token: str, config: ProviderConfig, *, timeout: float = 20) -> Identity:
    resolver = RESOLVERS[config.kind]
    try:
        identity = resolver(access_token, config, timeout)
    except (requests.RequestException, ProviderApiError, ValueError) as e:
        logger.warning("identity lookup failed provider=%s error=%s", config.kind.value, type(e).__name__)
        raise IdentityFetchFailed() from e
    if not identity.login:
        logger.warning("identity lookup returned no login provider=%s", config.kind.value)
        raise IdentityFetchFailed()
    return identity
