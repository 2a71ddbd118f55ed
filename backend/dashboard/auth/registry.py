"""OAuth2 endpoint metadata for the supported identity providers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from dashboard.core.settings import Settings

CALLBACK_PATH = "/oauth2/callback"


class ProviderKind(str, Enum):
    GITHUB = "github"
    GITEE = "gitee"
    GITLAB = "gitlab"
    JIHULAB = "jihulab"
    GITEA = "gitea"

    @classmethod
    def parse(cls, value: str | None) -> "ProviderKind":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.GITHUB


@dataclass(frozen=True)
class ProviderConfig:
    kind: ProviderKind
    client_id: str
    client_secret: str
    authorize_url: str
    token_url: str
    scopes: tuple[str, ...]
    redirect_url: str
    # Base URL of a self-hosted forge; empty for hosted providers.
    endpoint: str = ""


# kind -> (authorize_url, token_url, scopes)
_HOSTED: dict[ProviderKind, tuple[str, str, tuple[str, ...]]] = {
    ProviderKind.GITHUB: (
        "https://github.com/login/oauth/authorize",
        "https://github.com/login/oauth/access_token",
        (),
    ),
    ProviderKind.GITEE: (
        "https://gitee.com/oauth/authorize",
        "https://gitee.com/oauth/token",
        (),
    ),
    ProviderKind.GITLAB: (
        "https://gitlab.com/oauth/authorize",
        "https://gitlab.com/oauth/token",
        ("read_user", "read_api"),
    ),
    ProviderKind.JIHULAB: (
        "https://jihulab.com/oauth/authorize",
        "https://jihulab.com/oauth/token",
        ("read_user", "read_api"),
    ),
}


def redirect_url(*, host: str, referer: str | None) -> str:
    # Behind a TLS-terminating proxy the request itself looks like plain HTTP,
    # so the scheme is taken from the Referer the browser sent.
    scheme = "https" if (referer or "").startswith("https://") else "http"
    return f"{scheme}://{host}{CALLBACK_PATH}"


def build_provider_config(settings: Settings, *, host: str, referer: str | None) -> ProviderConfig:
    kind = ProviderKind.parse(settings.oauth2_type)
    redirect = redirect_url(host=host, referer=referer)

    if kind is ProviderKind.GITEA:
        endpoint = settings.oauth2_endpoint.rstrip("/")
        return ProviderConfig(
            kind=kind,
            client_id=settings.oauth2_client_id,
            client_secret=settings.oauth2_client_secret,
            authorize_url=f"{endpoint}/login/oauth/authorize",
            token_url=f"{endpoint}/login/oauth/access_token",
            scopes=(),
            redirect_url=redirect,
            endpoint=endpoint,
        )

    authorize, token, scopes = _HOSTED[kind]
    return ProviderConfig(
        kind=kind,
        client_id=settings.oauth2_client_id,
        client_secret=settings.oauth2_client_secret,
        authorize_url=authorize,
        token_url=token,
        scopes=scopes,
        redirect_url=redirect,
    )


def authorize_url(config: ProviderConfig, *, state: str) -> str:
    params = {
        "access_type": "online",
        "client_id": config.client_id,
        "redirect_uri": config.redirect_url,
        "response_type": "code",
        "scope": " ".join(config.scopes),
        "state": state,
    }
    sep = "&" if "?" in config.authorize_url else "?"
    return f"{config.authorize_url}{sep}{urlencode(params)}"
