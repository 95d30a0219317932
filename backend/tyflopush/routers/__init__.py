"""API routers."""
from .registrations import router as registrations_router
from .events import router as events_router

__all__ = ["registrations_router", "events_router"]
