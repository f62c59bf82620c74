# Kalk API Middleware
"""Request middleware for correlation tracking."""

from .correlation import CorrelationMiddleware, get_correlation_id

__all__ = [
    "CorrelationMiddleware",
    "get_correlation_id",
]
