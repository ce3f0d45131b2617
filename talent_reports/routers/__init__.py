"""Routers package - API endpoint routers."""

from .health import router as health_router
from .render import router as render_router
from .reports import router as reports_router
from .views import router as views_router

__all__ = [
    "health_router",
    "render_router",
    "reports_router",
    "views_router",
]
