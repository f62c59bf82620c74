"""Kalk API: search and year-archive endpoints for the lake-liming map."""

__version__ = "1.0.0"
