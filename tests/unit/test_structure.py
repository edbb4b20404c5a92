"""
Unit tests for section structure synthesis.
"""

import pytest

from expander.models import ExpansionConfig, ParsedInstructions, SectionSpec
from expander.planning.structure import (
    LARGE_BODY_SECTIONS,
    build_structure,
    fill_partial_structure,
    large_structure,
    resolve_target,
    standard_structure,
)


def _total(sections):
    return sum(s.word_count for s in sections)


class TestGeneratedStructures:
    def test_standard_structure_for_5000(self):
        sections = standard_structure(5000)
        assert [(s.name, s.word_count) for s in sections] == [
            ("ABSTRACT", 75),
            ("INTRODUCTION", 500),
            ("LITERATURE REVIEW", 1000),
            ("CHAPTER 1: CORE ARGUMENT", 875),
            ("CHAPTER 2: SUPPORTING ANALYSIS", 875),
            ("CHAPTER 3: CRITICAL EXAMINATION", 875),
            ("CHAPTER 4: IMPLICATIONS", 500),
            ("CONCLUSION", 300),
        ]

    @pytest.mark.parametrize("target", [1, 7, 33, 999, 5000, 12345, 49999])
    def test_standard_structure_sums_to_target(self, target):
        sections = standard_structure(target)
        assert len(sections) == 8
        assert _total(sections) == target
        assert all(s.word_count >= 0 for s in sections)

    @pytest.mark.parametrize("target", [50000, 100000, 123457])
    def test_large_structure_sums_to_target(self, target):
        sections = large_structure(target)
        assert len(sections) == 3 + len(LARGE_BODY_SECTIONS)
        assert sections[0].name == "ABSTRACT"
        assert sections[-1].name == "CONCLUSION"
        assert _total(sections) == target

    def test_large_structure_fixed_shares(self):
        sections = large_structure(123457)
        assert sections[0].word_count == 1235
        assert sections[1].word_count == 6173
        assert sections[-1].word_count == 4938

    def test_threshold_selects_large_table(self):
        config = ExpansionConfig()
        sections, target = build_structure(ParsedInstructions(), 60000, config)
        assert target == 60000
        assert len(sections) == 15

    def test_zero_target_gives_empty_structure(self):
        assert build_structure(ParsedInstructions(), 0, ExpansionConfig()) == ([], 0)


class TestPartialStructure:
    def test_remaining_budget_split_evenly(self):
        sections = [
            SectionSpec(name="INTRODUCTION", word_count=1000),
            SectionSpec(name="CHAPTER 1: Background"),
            SectionSpec(name="CHAPTER 2: Analysis"),
            SectionSpec(name="CHAPTER 3: Synthesis"),
        ]
        filled, target = fill_partial_structure(sections, 9001)
        assert target == 9001
        assert [s.word_count for s in filled] == [1000, 2667, 2667, 2667]
        assert _total(filled) == target

    def test_no_budget_left_raises_target(self):
        sections = [
            SectionSpec(name="INTRODUCTION", word_count=3000),
            SectionSpec(name="CHAPTER 1: Background"),
        ]
        filled, target = fill_partial_structure(sections, 2000)
        assert filled[1].word_count == 3000
        assert target == 6000
        assert _total(filled) == target

    def test_all_explicit_target_becomes_sum(self):
        parsed = ParsedInstructions(
            target_word_count=5000,
            sections=(
                SectionSpec(name="ABSTRACT", word_count=300),
                SectionSpec(name="INTRODUCTION", word_count=700),
            ),
        )
        sections, target = build_structure(parsed, 5000, ExpansionConfig())
        assert target == 1000
        assert [s.word_count for s in sections] == [300, 700]

    def test_no_unspecified_section_left_at_zero(self):
        sections = [SectionSpec(name=f"CHAPTER {i}") for i in range(1, 6)]
        filled, target = fill_partial_structure(sections, 12)
        assert all(s.word_count > 0 for s in filled)
        assert _total(filled) == target == 12


class TestResolveTarget:
    def test_parsed_target_wins(self):
        parsed = ParsedInstructions(target_word_count=3000)
        assert resolve_target(parsed, 9000, 100, ExpansionConfig()) == 3000

    def test_request_target_used_when_instructions_silent(self):
        assert resolve_target(ParsedInstructions(), 9000, 100, ExpansionConfig()) == 9000

    def test_default_is_ten_times_input_with_floor(self):
        config = ExpansionConfig()
        assert resolve_target(ParsedInstructions(), None, 200, config) == 5000
        assert resolve_target(ParsedInstructions(), None, 800, config) == 8000
