"""
Shared test fixtures.

Environment variables are set before any application module is imported
because ``search_assistant.main`` reads settings at import time.
"""

import os

os.environ.setdefault("GOOGLE_API_KEY", "test-key")

import pytest  # noqa: E402

from search_assistant.core.errors import UpstreamError  # noqa: E402
from search_assistant.models.search import GroundedResponse, GroundingMetadata  # noqa: E402
from search_assistant.services.assistant import SearchAssistant  # noqa: E402
from search_assistant.services.sessions import InMemorySessionStore  # noqa: E402


class MockGeminiService:
    """Mock Gemini service returning canned grounded responses."""

    model = "gemini-test"

    def __init__(self, responses=None, error=None):
        self._responses = list(responses or [])
        self._error = error
        self.prompts = []

    async def generate(self, conversation, prompt):
        self.prompts.append(prompt)
        if self._error is not None:
            raise self._error
        response = self._responses.pop(0) if self._responses else GroundedResponse(text="")
        conversation.append({"role": "user", "parts": [{"text": prompt}]})
        conversation.append({"role": "model", "parts": [{"text": response.text}]})
        return response


@pytest.fixture
def cats_metadata():
    return GroundingMetadata.model_validate(
        {
            "groundingChunks": [{"web": {"uri": "https://a.com", "title": "A"}}],
            "groundingSupports": [
                {
                    "segment": {"startIndex": 0, "endIndex": 17, "text": "Cats are mammals."},
                    "groundingChunkIndices": [0],
                    "confidenceScores": [0.9],
                }
            ],
        }
    )


@pytest.fixture
def cats_response(cats_metadata):
    return GroundedResponse(text="Cats are mammals.", grounding_metadata=cats_metadata)


@pytest.fixture
def dogs_response():
    return GroundedResponse(
        text="Dogs are mammals too.",
        grounding_metadata=GroundingMetadata.model_validate(
            {
                "groundingChunks": [{"web": {"uri": "https://b.com", "title": "B"}}],
                "groundingSupports": [
                    {
                        "segment": {"text": "Dogs are mammals too."},
                        "groundingChunkIndices": [0],
                    }
                ],
            }
        ),
    )


@pytest.fixture
def gemini(cats_response, dogs_response):
    return MockGeminiService(responses=[cats_response, dogs_response])


@pytest.fixture
def session_store():
    return InMemorySessionStore()


@pytest.fixture
def assistant(gemini, session_store):
    return SearchAssistant(gemini, session_store)


@pytest.fixture
def failing_assistant(session_store):
    return SearchAssistant(
        MockGeminiService(error=UpstreamError("quota exceeded")), session_store
    )
