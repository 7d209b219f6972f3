"""API and page routers."""

from agora.api.routes import admin, context, dashboard, replies, statuses, threads

__all__ = ["admin", "context", "dashboard", "replies", "statuses", "threads"]
