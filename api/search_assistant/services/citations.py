"""
Citation resolver.

Turns a grounded model response into a deduplicated source list and
inserts bracketed reference markers after the text segments each
grounding support covers.

1. Discover sources from grounding chunks, one per distinct URL, numbered
   in first-seen order.
2. Walk the supports in order and append ``[i][j]`` after the first
   occurrence of each supported segment.

Segment offsets from the model are not trusted; segments are located by
their literal text. The resolver never raises on incomplete metadata.
"""

import logging
from dataclasses import dataclass, field

from search_assistant.models.search import (
    GroundingChunk,
    GroundingMetadata,
    GroundingSupport,
    Source,
)

logger = logging.getLogger(__name__)


@dataclass
class CitationResult:
    """Annotated text plus the sources its markers refer to."""

    annotated_text: str
    sources: list[Source] = field(default_factory=list)


def resolve_citations(
    raw_text: str,
    metadata: GroundingMetadata | None,
) -> CitationResult:
    """Resolve citations for one model response."""
    if metadata is None:
        return CitationResult(annotated_text=raw_text)
    return resolve(raw_text, metadata.grounding_chunks, metadata.grounding_supports)


def resolve(
    raw_text: str,
    chunks: list[GroundingChunk] | None,
    supports: list[GroundingSupport] | None,
) -> CitationResult:
    """
    Build the source list and annotate the text with reference markers.

    Args:
        raw_text: The model's answer text.
        chunks: Grounding chunks for this response.
        supports: Grounding supports for this response.

    Returns:
        CitationResult with the annotated text and sources sorted by index.
    """
    chunks = chunks or []
    supports = supports or []

    source_map = _discover_sources(chunks, supports)
    annotated = _insert_references(raw_text, chunks, supports, source_map)

    sources = sorted(source_map.values(), key=lambda s: s.index)
    return CitationResult(annotated_text=annotated, sources=sources)


def _discover_sources(
    chunks: list[GroundingChunk],
    supports: list[GroundingSupport],
) -> dict[str, Source]:
    """Create one Source per distinct chunk URL, keyed by URL."""
    source_map: dict[str, Source] = {}

    for position, chunk in enumerate(chunks):
        web = chunk.web
        if web is None or not web.uri or not web.title:
            continue
        if web.uri in source_map:
            continue

        snippet = " ".join(
            support.segment.text
            for support in supports
            if support.segment is not None
            and position in support.grounding_chunk_indices
        )
        source_map[web.uri] = Source(
            title=web.title,
            url=web.uri,
            snippet=snippet,
            index=len(source_map) + 1,
        )
        logger.debug("Added source [%d] %s", len(source_map), web.uri)

    return source_map


def _insert_references(
    text: str,
    chunks: list[GroundingChunk],
    supports: list[GroundingSupport],
    source_map: dict[str, Source],
) -> str:
    """Append reference markers after each supported segment, in support order."""
    for support in supports:
        segment = support.segment
        if segment is None or not segment.text:
            continue

        indices = _source_indices(support.grounding_chunk_indices, chunks, source_map)
        if not indices:
            continue

        # Segment already carries a marker from the model
        if "[" in segment.text or segment.text.endswith("]"):
            continue

        if segment.text not in text:
            logger.debug("Segment not found in text, dropping: %.60r", segment.text)
            continue

        references = "".join(f"[{i}]" for i in indices)
        text = text.replace(segment.text, f"{segment.text} {references}", 1)

    return text


def _source_indices(
    chunk_indices: list[int],
    chunks: list[GroundingChunk],
    source_map: dict[str, Source],
) -> list[int]:
    """Map chunk positions to distinct, ascending source indices."""
    found: set[int] = set()
    for chunk_index in chunk_indices:
        if not 0 <= chunk_index < len(chunks):
            continue
        web = chunks[chunk_index].web
        if web is None or not web.uri:
            continue
        source = source_map.get(web.uri)
        if source is not None:
            found.add(source.index)
    return sorted(found)
