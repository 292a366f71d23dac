"""
Profile Comparer API Routes
"""

from .compare import router as compare_router
from .health import router as health_router

__all__ = [
    "compare_router",
    "health_router",
]
