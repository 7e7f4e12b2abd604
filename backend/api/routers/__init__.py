"""
API Routers package.

Each module contains a FastAPI router for a specific domain.
"""

from .search import router as search_router
from .bulk import router as bulk_router
from .listas import router as listas_router

__all__ = [
    "search_router",
    "bulk_router",
    "listas_router",
]
