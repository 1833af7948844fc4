"""API Routers package

Routers are organized by feature domain.
"""

from . import events_router, stats_router, viewer_router

__all__ = [
    "events_router",
    "stats_router",
    "viewer_router",
]
