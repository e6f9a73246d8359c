"""
Search assistant orchestrator.

Coordinates a grounded search turn:
1. Start a conversation (new search) or load it from the session store (follow-up).
2. Send the query with the citation instruction to Gemini.
3. Resolve grounding metadata into sources and reference markers.
4. Format the annotated answer as HTML.
"""

import logging

from search_assistant.core.errors import InvalidRequestError, SessionNotFoundError
from search_assistant.core.telemetry import get_tracer
from search_assistant.models.search import (
    FollowUpResponse,
    GroundedResponse,
    SearchResponse,
)
from search_assistant.services.citations import resolve_citations
from search_assistant.services.formatter import format_response
from search_assistant.services.gemini_client import GeminiService
from search_assistant.services.sessions import Conversation, SessionStore

logger = logging.getLogger(__name__)

CITATION_INSTRUCTION = (
    "\n\nPlease include numbered references to your sources in square brackets "
    "[1], [2], etc. at the end of relevant statements."
)


class SearchAssistant:
    """Runs new searches and follow-ups against grounded Gemini conversations."""

    def __init__(
        self,
        gemini_service: GeminiService,
        session_store: SessionStore,
        promote_headings: bool = True,
    ) -> None:
        self._gemini = gemini_service
        self._sessions = session_store
        self._promote_headings = promote_headings
        self._tracer = get_tracer()

    async def search(self, query: str | None) -> SearchResponse:
        """
        Answer a query in a new conversation.

        Raises:
            InvalidRequestError: The query is missing or blank.
            UpstreamError: The model call failed.
        """
        if not query or not query.strip():
            raise InvalidRequestError("Query parameter 'q' is required")

        with self._tracer.start_as_current_span("assistant.search") as span:
            span.set_attribute("assistant.query_length", len(query))

            conversation: Conversation = []
            response = await self._gemini.generate(conversation, _with_instruction(query))
            summary, sources = self._render(response)

            session_id = self._sessions.create(conversation)
            span.set_attribute("assistant.source_count", len(sources))
            return SearchResponse(session_id=session_id, summary=summary, sources=sources)

    async def follow_up(self, session_id: str | None, query: str | None) -> FollowUpResponse:
        """
        Continue an existing conversation.

        Raises:
            InvalidRequestError: Session id or query is missing.
            SessionNotFoundError: No session with this id.
            UpstreamError: The model call failed.
        """
        if not session_id or not query:
            raise InvalidRequestError("Both sessionId and query are required")

        with self._tracer.start_as_current_span("assistant.follow_up") as span:
            span.set_attribute("assistant.query_length", len(query))

            async with self._sessions.lock(session_id):
                session = self._sessions.get(session_id)
                if session is None:
                    logger.info("Follow-up for unknown session %s", session_id)
                    raise SessionNotFoundError("Chat session not found")

                response = await self._gemini.generate(
                    session.conversation, _with_instruction(query)
                )
                self._sessions.put(session)

            summary, sources = self._render(response)
            span.set_attribute("assistant.source_count", len(sources))
            return FollowUpResponse(summary=summary, sources=sources)

    def _render(self, response: GroundedResponse):
        """Resolve citations and format the answer."""
        with self._tracer.start_as_current_span("assistant.render"):
            result = resolve_citations(response.text, response.grounding_metadata)
            logger.info("Resolved %d sources", len(result.sources))
            summary = format_response(
                result.annotated_text,
                result.sources,
                promote_headings=self._promote_headings,
            )
            return summary, result.sources


def _with_instruction(query: str) -> str:
    return f"{query}{CITATION_INSTRUCTION}"
