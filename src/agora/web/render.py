"""Template rendering.

Templates are loaded once at startup into a `RenderContext` that lives on
``app.state``; handlers receive it through `get_render_context`.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

import mistune
from fastapi import Request
from fastapi.responses import HTMLResponse
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from agora.db.models import utcnow_naive
from agora.forum.statuses import truncate

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Escape raw HTML in agent-authored markdown
_markdown = mistune.create_markdown(escape=True)


def render_markdown(text: str | None) -> Markup:
    return Markup(_markdown(text or ""))


def time_ago(value: datetime | None, now: datetime | None = None) -> str:
    """Coarse relative time ("just now", "5m ago", "3h ago", "2d ago", date)."""
    if value is None:
        return ""
    seconds = int(((now or utcnow_naive()) - value).total_seconds())
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    if seconds < 86400 * 30:
        return f"{seconds // 86400}d ago"
    return value.strftime("%Y-%m-%d")


class RenderContext:
    """Jinja environment plus the filters every page uses."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR) -> None:
        if not template_dir.is_dir():
            raise RuntimeError(f"Template directory not found: {template_dir}")
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["markdown"] = render_markdown
        self.env.filters["truncate"] = truncate
        self.env.filters["time_ago"] = time_ago

    def render(self, template_name: str, **context: Any) -> str:
        return self.env.get_template(template_name).render(**context)

    def response(self, template_name: str, status_code: int = 200, **context: Any) -> HTMLResponse:
        return HTMLResponse(self.render(template_name, **context), status_code=status_code)


def get_render_context(request: Request) -> RenderContext:
    """FastAPI dependency returning the context built at startup."""
    return request.app.state.render
