# Kalk API Models
"""Pydantic models for search, archiving and authentication."""

from .archive import (
    AppConfigResponse,
    AppConfigRow,
    ArchiveEntry,
    ArchiveListResponse,
    ArchiveRequest,
    ArchiveResponse,
    GeneratedMigration,
    SwitchArchiveRequest,
    TableNames,
)
from .auth import AuthUser, UserRecord
from .search import SearchResponse, SearchResult, SearchSource

__all__ = [
    # Archive models
    "AppConfigResponse",
    "AppConfigRow",
    "ArchiveEntry",
    "ArchiveListResponse",
    "ArchiveRequest",
    "ArchiveResponse",
    "GeneratedMigration",
    "SwitchArchiveRequest",
    "TableNames",
    # Auth models
    "AuthUser",
    "UserRecord",
    # Search models
    "SearchResponse",
    "SearchResult",
    "SearchSource",
]
