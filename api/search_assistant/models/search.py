"""
Pydantic models for the Search API contracts and the grounding metadata
returned by the model service.

Grounding models accept the camelCase wire names and tolerate absent fields;
every list defaults to empty.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    """Base for models exchanged in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Grounding metadata (model service response) ---


class WebSource(_WireModel):
    """The web document behind a grounding chunk."""

    uri: str | None = None
    title: str | None = None


class GroundingChunk(_WireModel):
    """One retrieved web document reference."""

    web: WebSource | None = None


class TextSegment(_WireModel):
    """A span of the model's raw text."""

    start_index: int | None = None
    end_index: int | None = None
    text: str = ""


class GroundingSupport(_WireModel):
    """Links a text segment to the chunks that substantiate it."""

    segment: TextSegment | None = None
    grounding_chunk_indices: list[int] = Field(default_factory=list)
    confidence_scores: list[float] = Field(default_factory=list)


class GroundingMetadata(_WireModel):
    """Grounding side-channel attached to a model candidate."""

    grounding_chunks: list[GroundingChunk] = Field(default_factory=list)
    grounding_supports: list[GroundingSupport] = Field(default_factory=list)
    web_search_queries: list[str] = Field(default_factory=list)
    search_entry_point: dict[str, Any] | None = None


class GroundedResponse(BaseModel):
    """Text and optional grounding metadata from one model turn."""

    text: str = ""
    grounding_metadata: GroundingMetadata | None = None


# --- Search API contracts ---


class Source(BaseModel):
    """A deduplicated web citation, indexed for a single response."""

    title: str = Field(..., description="Display name of the web page")
    url: str = Field(..., description="Web URI, unique within a response")
    snippet: str = Field("", description="Grounded text segments citing this source")
    index: int = Field(..., description="1-based citation number used in the summary")


class FollowUpRequest(_WireModel):
    """Request body for POST /api/follow-up."""

    session_id: str | None = Field(None, description="Session returned by /api/search")
    query: str | None = Field(None, description="Follow-up question")


class FollowUpResponse(BaseModel):
    """Response body from POST /api/follow-up."""

    summary: str = Field(..., description="HTML answer with inline citations")
    sources: list[Source] = Field(
        default_factory=list, description="Cited sources ordered by index"
    )


class SearchResponse(FollowUpResponse):
    """Response body from GET /api/search."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(
        ..., alias="sessionId", description="Token for continuing the conversation"
    )
