# Kalk API Configuration
"""Configuration settings loaded from environment variables."""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Kalk API settings from environment variables."""

    # API
    api_title: str = Field(default="Kalk API", description="OpenAPI title")
    api_version: str = Field(default="1.0.0", description="Service version")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed origins for CORS",
    )

    # Hosted database (REST gateway + identity service)
    supabase_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the hosted database project",
    )
    supabase_anon_key: str = Field(
        default="",
        description="Public API key sent with every request",
    )
    supabase_service_key: Optional[str] = Field(
        default=None,
        description="Service role key used for catalog probes (falls back to anon key)",
    )
    supabase_timeout: int = Field(
        default=30,
        description="Database request timeout in seconds",
    )

    # Tables
    app_config_table: str = Field(default="app_config", description="Singleton config table")
    users_table: str = Field(default="users", description="User records table")

    # Search
    search_min_query_length: int = Field(default=2, description="Minimum trimmed query length")
    search_source_limit: int = Field(default=10, description="Rows fetched per source table")
    search_result_limit: int = Field(default=15, description="Results returned per request")
    search_fallback_limit: int = Field(default=5, description="Rows fetched by the diagnostic fallback")

    # Archive
    table_names_cache_ttl: int = Field(
        default=60,
        description="Seconds the resolved active table names are cached",
    )
    archive_probe_prefixes: List[str] = Field(
        default=["", "test", "backup", "old"],
        description="Prefixes probed when listing archives",
    )
    archive_readonly_roles: List[str] = Field(
        default=["authenticated", "anon"],
        description="Roles whose write privileges are revoked on archived tables",
    )

    class Config:
        env_prefix = ""
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
