"""
Gemini client wrapper.

Calls the Generative Language ``generateContent`` REST endpoint with the
``google_search`` grounding tool enabled and returns the answer text with
its grounding metadata. Conversation history is kept by the caller and
extended only when a call succeeds. No retries are performed.
"""

import json
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from search_assistant.core.config import Settings
from search_assistant.core.errors import UpstreamError
from search_assistant.core.telemetry import get_tracer
from search_assistant.models.search import GroundedResponse, GroundingMetadata
from search_assistant.services.sessions import Conversation

logger = logging.getLogger(__name__)

# Candidates with these finish reasons carry no usable answer
BLOCKED_FINISH_REASONS = frozenset(
    {
        "SAFETY",
        "RECITATION",
        "BLOCKLIST",
        "PROHIBITED_CONTENT",
        "SPII",
        "IMAGE_SAFETY",
    }
)


class GeminiService:
    """Wrapper around the Gemini API for grounded multi-turn generation."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._tracer = get_tracer()
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.gemini_timeout_seconds,
        )
        self._url = (
            f"{settings.gemini_api_base.rstrip('/')}/models/"
            f"{settings.gemini_model}:generateContent"
        )

    @property
    def model(self) -> str:
        return self._settings.gemini_model

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(self, conversation: Conversation, prompt: str) -> GroundedResponse:
        """
        Send a user turn on a conversation with web grounding enabled.

        Args:
            conversation: Prior turns; the user and model turns are appended on success.
            prompt: The user message for this turn.

        Returns:
            GroundedResponse with the answer text and grounding metadata, if any.

        Raises:
            UpstreamError: The call failed, or the response has no candidates,
                was blocked, or carries no text.
        """
        with self._tracer.start_as_current_span("gemini.generate") as span:
            span.set_attribute("gemini.model", self._settings.gemini_model)
            span.set_attribute("gemini.history_turns", len(conversation))

            user_turn = {"role": "user", "parts": [{"text": prompt}]}
            data = await self._post(self._build_payload([*conversation, user_turn]))

            candidates = data.get("candidates") or []
            if not candidates:
                raise UpstreamError("Model returned no candidates")

            candidate = candidates[0]
            finish_reason = candidate.get("finishReason")
            if finish_reason in BLOCKED_FINISH_REASONS:
                raise UpstreamError(f"Model response was blocked ({finish_reason})")

            parts = (candidate.get("content") or {}).get("parts") or []
            text = "".join(
                part.get("text", "") for part in parts if isinstance(part, dict)
            )
            if not text:
                raise UpstreamError(
                    f"Model returned no text (finish reason: {finish_reason or 'unknown'})"
                )
            metadata = self._parse_grounding(candidate.get("groundingMetadata"))

            conversation.append(user_turn)
            conversation.append({"role": "model", "parts": [{"text": text}]})

            if metadata is not None:
                span.set_attribute("gemini.grounding_chunks", len(metadata.grounding_chunks))
                span.set_attribute("gemini.grounding_supports", len(metadata.grounding_supports))
            logger.info(
                "Gemini response: %d chars, %s grounding chunks",
                len(text),
                len(metadata.grounding_chunks) if metadata else "no",
            )
            return GroundedResponse(text=text, grounding_metadata=metadata)

    def _build_payload(self, contents: Conversation) -> dict[str, Any]:
        return {
            "contents": contents,
            "tools": [{"google_search": {}}],
            "generationConfig": {
                "temperature": self._settings.gemini_temperature,
                "topP": self._settings.gemini_top_p,
                "topK": self._settings.gemini_top_k,
                "maxOutputTokens": self._settings.gemini_max_output_tokens,
            },
        }

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self._settings.google_api_key,
        }
        try:
            resp = await self._client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Model request failed: {exc}") from exc

        if not resp.is_success:
            logger.error("Gemini error %s: %s", resp.status_code, resp.text[:500])
            raise UpstreamError(_error_message(resp))

        try:
            data = resp.json()
        except ValueError as exc:
            raise UpstreamError("Model returned a non-JSON response") from exc

        logger.debug("Raw Gemini response: %s", json.dumps(data, indent=2))
        if not isinstance(data, dict):
            raise UpstreamError("Model returned an unexpected response")
        return data

    @staticmethod
    def _parse_grounding(raw: Any) -> GroundingMetadata | None:
        """Validate grounding metadata; malformed metadata is treated as absent."""
        if not raw:
            return None
        try:
            return GroundingMetadata.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Ignoring malformed grounding metadata: %s", exc)
            return None


def _error_message(resp: httpx.Response) -> str:
    """Extract the API error message, falling back to the status line."""
    try:
        error = resp.json().get("error") or {}
        message = error.get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"Model request failed with HTTP {resp.status_code}"
