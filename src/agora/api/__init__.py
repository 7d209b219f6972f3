"""HTTP surface: JSON API, dashboard pages and the admin panel."""

from agora.api.app import create_app

__all__ = ["create_app"]
