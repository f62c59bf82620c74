# Kalk API Routers
"""HTTP routers mounted under ``/api``."""

from . import archives, health, search

__all__ = ["archives", "health", "search"]
