"""
Unit tests for the citation resolver.
"""

from search_assistant.models.search import GroundingMetadata
from search_assistant.services.citations import resolve, resolve_citations


def _metadata(chunks, supports):
    return GroundingMetadata.model_validate(
        {"groundingChunks": chunks, "groundingSupports": supports}
    )


def _web(uri, title="Title"):
    return {"web": {"uri": uri, "title": title}}


def _support(text, indices):
    return {"segment": {"text": text}, "groundingChunkIndices": indices}


class TestSourceDiscovery:
    def test_single_source(self, cats_metadata):
        result = resolve_citations("Cats are mammals.", cats_metadata)

        assert len(result.sources) == 1
        source = result.sources[0]
        assert source.url == "https://a.com"
        assert source.title == "A"
        assert source.snippet == "Cats are mammals."
        assert source.index == 1
        assert result.annotated_text == "Cats are mammals. [1]"

    def test_duplicate_urls_collapse_to_one_source(self):
        metadata = _metadata(
            [_web("https://a.com", "A"), _web("https://a.com", "A again"), _web("https://b.com")],
            [_support("Fact one.", [1])],
        )
        result = resolve_citations("Fact one.", metadata)

        assert [s.url for s in result.sources] == ["https://a.com", "https://b.com"]
        assert result.sources[0].title == "A"
        assert result.annotated_text == "Fact one. [1]"

    def test_indices_are_contiguous_in_discovery_order(self):
        metadata = _metadata(
            [_web("https://c.com"), {"web": {"title": "No uri"}}, _web("https://a.com"),
             _web("https://c.com"), _web("https://b.com")],
            [],
        )
        result = resolve_citations("Text.", metadata)

        assert [s.url for s in result.sources] == ["https://c.com", "https://a.com", "https://b.com"]
        assert [s.index for s in result.sources] == [1, 2, 3]

    def test_chunks_without_title_or_web_are_skipped(self):
        metadata = _metadata(
            [{"web": {"uri": "https://untitled.com"}}, {}, _web("https://a.com")],
            [],
        )
        result = resolve_citations("Text.", metadata)

        assert [s.url for s in result.sources] == ["https://a.com"]
        assert result.sources[0].index == 1

    def test_snippet_joins_all_supporting_segments(self):
        metadata = _metadata(
            [_web("https://a.com")],
            [_support("One.", [0]), _support("Two.", [0])],
        )
        result = resolve_citations("One. Two.", metadata)

        assert result.sources[0].snippet == "One. Two."

    def test_snippet_empty_when_unsupported(self):
        metadata = _metadata([_web("https://a.com")], [])
        result = resolve_citations("Text.", metadata)

        assert result.sources[0].snippet == ""

    def test_snippet_from_duplicate_chunk_not_merged(self):
        metadata = _metadata(
            [_web("https://a.com"), _web("https://a.com")],
            [_support("First.", [0]), _support("Second.", [1])],
        )
        result = resolve_citations("First. Second.", metadata)

        assert result.sources[0].snippet == "First."
        assert result.annotated_text == "First. [1] Second. [1]"


class TestReferenceInsertion:
    def test_no_metadata_returns_text_unchanged(self):
        result = resolve_citations("Plain answer.", None)

        assert result.annotated_text == "Plain answer."
        assert result.sources == []

    def test_empty_lists_return_text_unchanged(self):
        result = resolve("Plain answer.", [], [])

        assert result.annotated_text == "Plain answer."
        assert result.sources == []

    def test_multiple_sources_sorted_and_deduplicated(self):
        metadata = _metadata(
            [_web("https://a.com"), _web("https://b.com"), _web("https://a.com")],
            [_support("Claim.", [1, 2, 0])],
        )
        result = resolve_citations("Claim.", metadata)

        assert result.annotated_text == "Claim. [1][2]"

    def test_segment_with_existing_marker_is_untouched(self):
        metadata = _metadata(
            [_web("https://a.com")],
            [_support("Cats [3] are mammals.", [0])],
        )
        result = resolve_citations("Cats [3] are mammals.", metadata)

        assert result.annotated_text == "Cats [3] are mammals."

    def test_segment_ending_with_bracket_is_untouched(self):
        metadata = _metadata(
            [_web("https://a.com")],
            [_support("Cats are mammals 2]", [0])],
        )
        result = resolve_citations("Cats are mammals 2] indeed.", metadata)

        assert result.annotated_text == "Cats are mammals 2] indeed."
        assert result.sources[0].snippet == "Cats are mammals 2]"

    def test_segment_not_in_text_is_dropped(self):
        metadata = _metadata(
            [_web("https://a.com")],
            [_support("Not present.", [0])],
        )
        result = resolve_citations("Something else.", metadata)

        assert result.annotated_text == "Something else."
        assert len(result.sources) == 1

    def test_only_first_occurrence_is_annotated(self):
        metadata = _metadata([_web("https://a.com")], [_support("Yes.", [0])])
        result = resolve_citations("Yes. Yes.", metadata)

        assert result.annotated_text == "Yes. [1] Yes."

    def test_insertion_follows_support_order(self):
        metadata = _metadata(
            [_web("https://a.com"), _web("https://b.com")],
            [_support("Dogs bark.", [0]), _support("Cats meow.", [1])],
        )
        result = resolve_citations("Cats meow. Dogs bark.", metadata)

        assert result.annotated_text == "Cats meow. [2] Dogs bark. [1]"

    def test_invalid_chunk_indices_are_ignored(self):
        metadata = _metadata(
            [_web("https://a.com"), {"web": {"uri": "https://untitled.com"}}],
            [_support("Bad refs.", [5, -1, 1]), _support("Good ref.", [7, 0])],
        )
        result = resolve_citations("Bad refs. Good ref.", metadata)

        assert result.annotated_text == "Bad refs. Good ref. [1]"

    def test_support_without_segment_is_ignored(self):
        metadata = _metadata(
            [_web("https://a.com")],
            [{"groundingChunkIndices": [0]}],
        )
        result = resolve_citations("Text.", metadata)

        assert result.annotated_text == "Text."
        assert result.sources[0].snippet == ""
