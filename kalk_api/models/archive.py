# Archive Models
"""Pydantic models for year archiving and the application config row."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..errors import RequestValidationFailed


class ArchiveRequest(BaseModel):
    """Validated input for archive SQL generation."""

    year: str = Field(..., description="Archive year, e.g. '2025'")
    prefix: str = Field(default="", description="Optional table name prefix")
    tablesToArchive: List[str] = Field(..., description="Base tables to archive, in order")

    @classmethod
    def from_payload(cls, payload: Any) -> "ArchiveRequest":
        """
        Build a request from a raw JSON body.

        Raises:
            RequestValidationFailed: year missing/blank, or no tables given
        """
        if not isinstance(payload, dict):
            raise RequestValidationFailed("Request body must be a JSON object")

        year = payload.get("year")
        if not isinstance(year, str) or not year.strip():
            raise RequestValidationFailed("Year is required")

        tables = payload.get("tablesToArchive")
        if not isinstance(tables, list) or len(tables) == 0:
            raise RequestValidationFailed("tablesToArchive array is required")
        if not all(isinstance(t, str) and t.strip() for t in tables):
            raise RequestValidationFailed("tablesToArchive must contain table names")

        prefix = payload.get("prefix") or ""
        if not isinstance(prefix, str):
            raise RequestValidationFailed("Prefix must be a string")

        return cls(
            year=year.strip(),
            prefix=prefix.strip(),
            tablesToArchive=[t.strip() for t in tables],
        )


class GeneratedMigration(BaseModel):
    """SQL produced for an archive run. Never executed by this service."""

    migration_name: str
    year: str
    prefix: str
    tables: List[str]
    statements: List[str] = Field(default_factory=list)

    @property
    def sql(self) -> str:
        return "\n".join(self.statements)


class ArchiveResponse(BaseModel):
    message: str = "Archive SQL generated successfully"
    year: str
    prefix: str
    migrationName: str
    sql: str
    tablesToArchive: List[str]
    note: str = "Execute this migration to complete the archive process"


class ArchiveEntry(BaseModel):
    """An archive that can be switched to; year 'current' is the live tables."""

    year: str
    prefix: str = ""


class ArchiveListResponse(BaseModel):
    archives: List[ArchiveEntry] = Field(default_factory=list)


class AppConfigRow(BaseModel):
    """The singleton ``app_config`` row (id = 1)."""

    model_config = ConfigDict(extra="allow")

    id: int = 1
    active_year: str = "current"
    active_prefix: Optional[str] = ""
    updated_at: Optional[str] = None
    updated_by: Optional[str] = None


class AppConfigResponse(BaseModel):
    config: AppConfigRow


class SwitchArchiveRequest(BaseModel):
    """Input for pointing the application at another archive."""

    year: str
    prefix: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> "SwitchArchiveRequest":
        if not isinstance(payload, dict):
            raise RequestValidationFailed("Request body must be a JSON object")

        year = payload.get("year")
        if not isinstance(year, str) or not year.strip():
            raise RequestValidationFailed("Year is required")

        prefix = payload.get("prefix") or ""
        if not isinstance(prefix, str):
            raise RequestValidationFailed("Prefix must be a string")

        return cls(year=year.strip(), prefix=prefix.strip())


class TableNames(BaseModel):
    """Active physical name for each base table."""

    vass_associations: str = "vass_associations"
    vass_info: str = "vass_info"
    vass_info_documents: str = "vass_info_documents"
    vass_info_images: str = "vass_info_images"
    vass_lasteplass: str = "vass_lasteplass"
    vass_lasteplass_documents: str = "vass_lasteplass_documents"
    vass_lasteplass_images: str = "vass_lasteplass_images"
    vass_vann: str = "vass_vann"
    vass_vann_documents: str = "vass_vann_documents"
    vass_vann_images: str = "vass_vann_images"
