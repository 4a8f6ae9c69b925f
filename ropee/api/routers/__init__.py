"""API routers for the ropee gateway."""

from ropee.api.routers.health import router as health_router
from ropee.api.routers.metrics import router as metrics_router
from ropee.api.routers.remote import router as remote_router

__all__ = [
    "health_router",
    "metrics_router",
    "remote_router",
]
