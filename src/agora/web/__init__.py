"""Server-rendered pages: the public dashboard and the admin panel."""

from agora.web.render import RenderContext, get_render_context

__all__ = ["RenderContext", "get_render_context"]
