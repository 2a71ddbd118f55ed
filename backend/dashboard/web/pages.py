from __future__ import annotations

from pathlib import Path

from fastapi import Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from dashboard.core.settings import get_settings

TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"
DEFAULT_THEME = "default"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _template(page: str) -> str:
    theme = get_settings().site_dashboard_theme or DEFAULT_THEME
    name = f"dashboard-{theme}/{page}.html"
    if not (TEMPLATES_DIR / name).is_file():
        name = f"dashboard-{DEFAULT_THEME}/{page}.html"
    return name


def render_redirect(request: Request, url: str) -> HTMLResponse:
    return templates.TemplateResponse(request, _template("redirect"), {"url": url})


def render_error(
    request: Request,
    *,
    title: str,
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        _template("error"),
        {"title": title, "message": message},
        status_code=status_code,
    )
