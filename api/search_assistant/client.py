"""
Async client for the Search Assistant API.

``ask`` applies the caller-side recovery policy: without a session, or
when the server no longer knows the session, the question is re-issued
as a new search.
"""

import logging

from httpx import AsyncClient, HTTPStatusError

from search_assistant.models.search import FollowUpResponse, SearchResponse

logger = logging.getLogger(__name__)


class SearchAssistantClient:
    """Thin wrapper over the /api/search and /api/follow-up endpoints."""

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    async def search(self, query: str) -> SearchResponse:
        resp = await self._client.get("/api/search", params={"q": query})
        resp.raise_for_status()
        return SearchResponse.model_validate(resp.json())

    async def follow_up(self, session_id: str, query: str) -> FollowUpResponse:
        resp = await self._client.post(
            "/api/follow-up", json={"sessionId": session_id, "query": query}
        )
        resp.raise_for_status()
        return FollowUpResponse.model_validate(resp.json())

    async def ask(
        self, query: str, session_id: str | None = None
    ) -> tuple[str, FollowUpResponse]:
        """
        Ask a question, continuing ``session_id`` when possible.

        Returns:
            Tuple of (session id to use next, response).
        """
        if not session_id:
            result = await self.search(query)
            return result.session_id, result

        try:
            return session_id, await self.follow_up(session_id, query)
        except HTTPStatusError as exc:
            if exc.response.status_code != 404:
                raise
            logger.info("Session %s not found; starting a new search", session_id)
            result = await self.search(query)
            return result.session_id, result
