# Search Router
"""Water body / landing site search endpoint."""

import logging

from fastapi import APIRouter, Depends, Request

from ..dependencies import AuthenticatedUser, get_current_user, require_search_query
from ..errors import ApiError, InternalError
from ..models import SearchResponse
from ..services.search_service import search_service

router = APIRouter(tags=["search"])
logger = logging.getLogger("kalk.api.search")


@router.get("/search", response_model=SearchResponse)
async def search(
    request: Request,
    query: str = Depends(require_search_query),
    current: AuthenticatedUser = Depends(get_current_user),
):
    """
    Search water bodies by name and landing sites by lp/kode.

    Exact (case-insensitive) matches come first, then alphabetical order.
    At most 15 results are returned; ``total`` is the count before truncation.
    """
    correlation_id = getattr(request.state, "correlation_id", "no-id")
    logger.info(f"[{correlation_id}] SEARCH: user={current.email} q='{query}'")

    try:
        response = await search_service.search(query, token=current.token)
        logger.info(
            f"[{correlation_id}] SEARCH_DONE: returned={len(response.results)} total={response.total}"
        )
        return response
    except ApiError:
        raise
    except Exception as e:
        logger.error(f"[{correlation_id}] SEARCH_ERROR: {e}", exc_info=True)
        raise InternalError()
