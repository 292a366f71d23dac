"""
Profile Comparer API Module

HTTP surface: request models, dependencies and routers.
"""

from .routes import compare_router, health_router

__all__ = [
    "compare_router",
    "health_router",
]
