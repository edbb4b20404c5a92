"""
Unit tests for section post-processing and context helpers.
"""

from expander.utils.text import chunk_words, count_words, last_paragraphs, truncate_words
from expander.writing.text_tools import (
    extract_key_points,
    relevant_source_excerpt,
    strip_metadata,
    summarize_section,
)


class TestStripMetadata:
    def test_removes_planning_markers_and_following_blank(self):
        raw = (
            "**KEY POINTS:** one, two\n"
            "\n"
            "Real prose starts here.\n"
            "UNIQUE CONCEPTUAL CONTRIBUTION: a new tool\n"
            "More prose."
        )
        assert strip_metadata(raw) == "Real prose starts here.\nMore prose."

    def test_drops_rules_and_word_count_annotations(self):
        raw = "## Background (1,200 words)\n---\nText body.\n\n\n\nNext paragraph."
        assert strip_metadata(raw) == "## Background\nText body.\n\nNext paragraph."

    def test_drops_skeleton_banner(self):
        raw = "=== DOCUMENT SKELETON ===\nThe argument proceeds."
        assert strip_metadata(raw) == "The argument proceeds."

    def test_drops_box_drawing_banners(self):
        raw = "═══ DOCUMENT SKELETON ═══\n═══ GENERATING SECTIONS ═══\nThe argument proceeds."
        assert strip_metadata(raw) == "The argument proceeds."

    def test_plain_prose_untouched(self):
        prose = "First paragraph.\n\nSecond paragraph."
        assert strip_metadata(prose) == prose


class TestKeyPoints:
    def test_claim_sentences_prefixed_and_capped(self):
        content = ". ".join(
            f"This section argues point number {i} with considerable supporting detail" for i in range(12)
        )
        points = extract_key_points(content, "INTRODUCTION")
        assert len(points) == 8
        assert all(p.startswith("[INTRODUCTION] ") for p in points)

    def test_near_duplicates_collapsed(self):
        sentence = "The central claim is that shared reserves dampen volatility for every member"
        points = extract_key_points(f"{sentence}. {sentence.upper()}.", "CH1")
        assert len(points) == 1

    def test_fallback_to_first_sentences(self):
        content = "Rain fell on the valley all through the night. Rivers rose over their banks by morning. " \
                  "Farmers moved their herds to the upper fields. Nobody slept much that week."
        points = extract_key_points(content, "NARRATIVE")
        assert len(points) == 3
        assert points[0] == "[NARRATIVE] Rain fell on the valley all through the night"


class TestSummaries:
    def test_short_content_returned_as_is(self):
        assert summarize_section("Short section.", 400) == "Short section."

    def test_long_content_condensed(self):
        opening = "Opening paragraph sets out the problem of shared risk in farming villages. " * 3
        middle = "This section introduces the idea of a reserve pool that members draw on. " * 3
        filler = "Background detail about rainfall and markets that adds little. " * 30
        closing = "Closing paragraph ties the reserve pool back to the opening problem. " * 3
        content = "\n\n".join([opening, filler, middle, filler, closing])
        summary = summarize_section(content, max_words=100)
        parts = summary.split("\n\n")
        assert parts[0].startswith("Opening paragraph")
        assert parts[1].startswith("This section introduces")
        assert parts[-1].startswith("Closing paragraph")
        assert count_words(summary) < count_words(content)


class TestExcerpt:
    def test_small_source_returned_whole(self):
        assert relevant_source_excerpt("tiny source", "INTRO", "", 3000) == "tiny source"

    def test_keyword_paragraphs_selected_in_source_order(self):
        irrelevant = "Weather reports list temperatures and winds for the region today. " * 5
        relevant = "Irrigation cooperatives share canals and irrigation schedules fairly. " * 5
        paragraphs = [irrelevant, relevant, irrelevant, relevant]
        source = "\n\n".join(paragraphs)
        excerpt = relevant_source_excerpt(source, "CHAPTER 2: Irrigation cooperatives", "", max_words=90)
        assert excerpt.count("Irrigation cooperatives") == 10
        assert "Weather" not in excerpt


class TestTextHelpers:
    def test_truncate_and_count(self):
        assert truncate_words("a b  c\nd", 2) == "a b"
        assert count_words("a b  c\nd") == 4

    def test_last_paragraphs(self):
        assert last_paragraphs("p1\n\np2\n\np3\n\np4", 3) == "p2\n\np3\n\np4"

    def test_chunk_words_last_shorter(self):
        chunks = chunk_words(" ".join(str(i) for i in range(25)), 10)
        assert [count_words(c) for c in chunks] == [10, 10, 5]
