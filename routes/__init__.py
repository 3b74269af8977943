"""
API route modules.
"""

from routes.catalog import router as catalog_router

__all__ = [
    "catalog_router",
]
