# Health Router
"""Liveness endpoint."""

from fastapi import APIRouter

from ..config import settings

router = APIRouter(tags=["system"])


@router.get("/health")
async def health():
    return {"status": "ok", "service": "kalk-api", "version": settings.api_version}
