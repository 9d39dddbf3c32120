"""
API Module
FastAPI routers for the PillTrack application
"""

from api.users import router as users_router
from api.catalog import router as catalog_router
from api.tracker import router as tracker_router
from api.calendar import router as calendar_router

from api.deps import (
    get_db,
    get_now,
    http_error,
    services,
)


__all__ = [
    # Routers
    "users_router",
    "catalog_router",
    "tracker_router",
    "calendar_router",
    # Dependencies
    "get_db",
    "get_now",
    "http_error",
    "services",
]


def include_routers(app, prefix: str = "/api/v1"):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(users_router, prefix=prefix)
    app.include_router(catalog_router, prefix=prefix)
    app.include_router(tracker_router, prefix=prefix)
    app.include_router(calendar_router, prefix=prefix)
