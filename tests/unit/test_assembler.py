"""
Unit tests for final assembly.
"""

import time

from expander.assembly import assemble
from expander.models import GeneratedSection, StitchReport


def test_sections_joined_in_order():
    sections = [
        GeneratedSection(name="INTRODUCTION", content="First words here."),
        GeneratedSection(name="CONCLUSION", content="Last words."),
    ]
    result = assemble(sections, 42, time.perf_counter())

    assert result.expanded_text == "INTRODUCTION\n\nFirst words here.\n\nCONCLUSION\n\nLast words."
    assert result.output_word_count == 7
    assert result.input_word_count == 42
    assert result.sections_generated == 2
    assert result.processing_time_ms >= 0
    assert not result.stopped_early
    assert result.stitch is None


def test_empty_section_list():
    result = assemble([], 10, time.perf_counter())
    assert result.expanded_text == ""
    assert result.output_word_count == 0
    assert result.sections_generated == 0


def test_carries_stitch_report_and_stop_flag():
    report = StitchReport(repairs_requested=1, repairs_applied=1)
    result = assemble(
        [GeneratedSection(name="A", content="b")], 1, time.perf_counter() - 0.25, stitch=report, stopped_early=True
    )
    assert result.stitch == report
    assert result.stopped_early
    assert result.processing_time_ms >= 250
