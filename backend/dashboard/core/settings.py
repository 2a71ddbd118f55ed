from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    allowed_hosts: str = ""
    log_level: str = "INFO"

    cookie_secure: bool = False

    database_url: str = "sqlite+pysqlite:///./dashboard.db"

    # github|gitee|gitlab|jihulab|gitea; anything else behaves like github.
    oauth2_type: str = "github"
    oauth2_client_id: str = ""
    oauth2_client_secret: str = ""
    # Base URL of a self-hosted forge, e.g. https://git.example.com
    oauth2_endpoint: str = ""
    oauth2_admin: str = ""

    oauth2_state_ttl_seconds: int = 300
    oauth2_state_store: str = "memory"

    site_cookie_name: str = "dashboard-token"
    site_dashboard_theme: str = "default"

    session_cookie_max_age: int = 60 * 60 * 24
    session_lifetime_months: int = 2

    http_timeout_seconds: float = 15.0


@lru_cache
def get_settings() -> Settings:
    return Settings()


def parse_allowed_hosts(settings: Settings) -> list[str]:
    if settings.allowed_hosts.strip():
        return [h.strip() for h in settings.allowed_hosts.split(",") if h.strip()]
    # Default for local dev + tests.
    return ["localhost", "127.0.0.1", "testserver"]
