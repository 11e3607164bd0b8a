"""API Routers package

Routers are organized by feature domain.
"""

from . import auth_router, goal_router, metric_router, overlay_router

__all__ = [
    "auth_router",
    "goal_router",
    "metric_router",
    "overlay_router",
]
