"""
API route modules.
"""

from routes.supplier_updates import router as supplier_updates_router

__all__ = [
    "supplier_updates_router",
]
