from __future__ import annotations

import logging

from fastapi import FastAPI
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.requests import Request
from starlette.responses import Response

from dashboard.api.router import root_router
from dashboard.api.router import router as api_router
from dashboard.auth.state_store import DatabaseStateStore, MemoryStateStore, StateStore
from dashboard.core.settings import Settings, get_settings, parse_allowed_hosts
from dashboard.db.session import get_sessionmaker


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_state_store(settings: Settings) -> StateStore:
    if settings.oauth2_state_store == "database":
        return DatabaseStateStore(get_sessionmaker())
    return MemoryStateStore()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Dashboard OAuth2 Login",
        version="0.1.0",
        docs_url="/api/docs" if settings.app_env == "dev" else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.app_env == "dev" else None,
    )
    app.state.state_store = build_state_store(settings)

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=parse_allowed_hosts(settings))

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        resp: Response = await call_next(request)
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        # Same-origin Referer lets /oauth2/login see the scheme the admin browsed with.
        resp.headers.setdefault("Referrer-Policy", "same-origin")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        return resp

    app.include_router(root_router)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
