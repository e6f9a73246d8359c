"""
Search router: GET /api/search and POST /api/follow-up.

Runs grounded searches and follow-up questions and returns HTML
summaries with numbered citations.
"""

import logging

from fastapi import APIRouter, Depends

from search_assistant.core.errors import SearchAssistantError, UpstreamError
from search_assistant.models.search import (
    FollowUpRequest,
    FollowUpResponse,
    SearchResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["search"])


def get_search_assistant():
    """
    Dependency injection for the search assistant.
    Initialized once in main.py and stored in app.state.
    """
    from search_assistant.main import app

    return app.state.search_assistant


@router.get("/search", response_model=SearchResponse)
async def search(
    q: str | None = None,
    assistant=Depends(get_search_assistant),
) -> SearchResponse:
    """
    Start a new grounded search.

    Returns the session id for follow-ups, the HTML summary, and the
    sources its citation markers point to.
    """
    try:
        return await assistant.search(q)
    except SearchAssistantError:
        raise
    except Exception as exc:
        logger.exception("Search error")
        raise UpstreamError(
            str(exc) or "An error occurred while processing your search"
        ) from exc


@router.post("/follow-up", response_model=FollowUpResponse)
async def follow_up(
    request: FollowUpRequest,
    assistant=Depends(get_search_assistant),
) -> FollowUpResponse:
    """
    Ask a follow-up question in an existing session.

    Unknown sessions return 404; callers recover by starting a new search.
    """
    try:
        return await assistant.follow_up(request.session_id, request.query)
    except SearchAssistantError:
        raise
    except Exception as exc:
        logger.exception("Follow-up error")
        raise UpstreamError(
            str(exc) or "An error occurred while processing your follow-up question"
        ) from exc
