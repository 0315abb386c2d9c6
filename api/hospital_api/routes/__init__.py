"""API routers."""

from .patients import router as patients_router
from .visits import router as visits_router
from .documents import router as documents_router

__all__ = ["patients_router", "visits_router", "documents_router"]
