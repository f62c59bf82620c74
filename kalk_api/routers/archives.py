# Archives Router
"""
Year archive endpoints.

``POST /archive`` only generates the migration SQL; an operator runs it.
Archiving copies and locks tables irreversibly, so it is never triggered
directly by a request.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request

from ..dependencies import AuthenticatedUser, require_marker_editor
from ..errors import ApiError, InternalError, RequestValidationFailed, UpstreamQueryError
from ..models import (
    AppConfigResponse,
    ArchiveListResponse,
    ArchiveRequest,
    ArchiveResponse,
    SwitchArchiveRequest,
)
from ..services.archive_service import archive_service
from ..services.archive_sql import build_archive_migration

router = APIRouter(tags=["archive"])
logger = logging.getLogger("kalk.api.archives")


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationFailed("Request body must be valid JSON")


@router.get("/list-archives", response_model=ArchiveListResponse)
async def list_archives():
    """All switchable archives, starting with the live tables ('current')."""
    try:
        archives = await archive_service.list_archives()
        return ArchiveListResponse(archives=archives)
    except Exception as e:
        logger.error(f"List archives error: {e}", exc_info=True)
        raise InternalError(details=str(e))


@router.post("/archive", response_model=ArchiveResponse)
async def create_archive(
    request: Request,
    current: AuthenticatedUser = Depends(require_marker_editor),
):
    """
    Generate the SQL migration archiving ``tablesToArchive`` under
    ``<year>_[<prefix>_]``. The SQL is returned, not executed.
    """
    try:
        archive_request = ArchiveRequest.from_payload(await _read_json(request))

        migration = build_archive_migration(
            year=archive_request.year,
            prefix=archive_request.prefix,
            tables=archive_request.tablesToArchive,
            updated_by=current.email or "",
        )
        logger.info(
            f"Archive SQL generated: {migration.migration_name} "
            f"({len(migration.tables)} tables) for {current.email}"
        )

        return ArchiveResponse(
            year=migration.year,
            prefix=migration.prefix,
            migrationName=migration.migration_name,
            sql=migration.sql,
            tablesToArchive=migration.tables,
        )
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Archive API error: {e}", exc_info=True)
        raise InternalError(details=str(e))


@router.get("/archive", response_model=AppConfigResponse)
async def get_archive_config():
    """The current app configuration (active year and prefix)."""
    try:
        config = await archive_service.get_config()
    except UpstreamQueryError as e:
        logger.error(f"Get config error: {e.message}")
        raise InternalError("Failed to fetch app configuration")
    except Exception as e:
        logger.error(f"Get config error: {e}", exc_info=True)
        raise InternalError(details=str(e))

    if config is None:
        raise InternalError("Failed to fetch app configuration")
    return AppConfigResponse(config=config)


@router.put("/archive/active", response_model=AppConfigResponse)
async def switch_active_archive(
    request: Request,
    current: AuthenticatedUser = Depends(require_marker_editor),
):
    """Point the application at another archive year/prefix ('current' for live)."""
    try:
        switch = SwitchArchiveRequest.from_payload(await _read_json(request))
        config = await archive_service.switch_active(
            year=switch.year,
            prefix=switch.prefix,
            updated_by=current.email,
            token=current.token,
        )
        return AppConfigResponse(config=config)
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"Switch archive error: {e}", exc_info=True)
        raise InternalError(details=str(e))
