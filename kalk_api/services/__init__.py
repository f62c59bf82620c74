# Kalk API Services
"""Service layer: database client, search, archive SQL and archive state."""

from .archive_service import ArchiveService, archive_service
from .search_service import SearchService, search_service
from .supabase_client import SupabaseClient, supabase_client
from .table_names import TableNameResolver, table_name_resolver
from .user_repository import UserRepository, user_repository

__all__ = [
    "ArchiveService",
    "archive_service",
    "SearchService",
    "search_service",
    "SupabaseClient",
    "supabase_client",
    "TableNameResolver",
    "table_name_resolver",
    "UserRepository",
    "user_repository",
]
