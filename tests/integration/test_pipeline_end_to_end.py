"""
End-to-end pipeline runs against the deterministic stub backend.
"""

import pytest

from expander.db import SQLiteJobStatusStore, SQLiteSectionStore
from expander.llm.errors import ProviderTransportError
from expander.models import CommitmentStatus, ExpansionRequest, JobStatus, PipelineStage
from expander.orchestration.events import RecordingSink
from expander.orchestration.pipeline import ExpansionPipeline
from expander.utils.text import count_words
from tests.fixtures.settings import fast_settings
from tests.fixtures.stub_backend import StubBackend, filler_words

STANDARD_NAMES = [
    "ABSTRACT",
    "INTRODUCTION",
    "LITERATURE REVIEW",
    "CHAPTER 1: CORE ARGUMENT",
    "CHAPTER 2: SUPPORTING ANALYSIS",
    "CHAPTER 3: CRITICAL EXAMINATION",
    "CHAPTER 4: IMPLICATIONS",
    "CONCLUSION",
]


class _BrokenStore:
    async def save_section(self, record):
        raise RuntimeError("disk full")


def _pipeline(settings, backend, **kwargs):
    sink = RecordingSink()
    return ExpansionPipeline(settings, backend, sink=sink, **kwargs), sink


@pytest.mark.integration
class TestPipelineEndToEnd:
    @pytest.mark.asyncio
    async def test_default_structure_reaches_target(self, settings, source_200):
        pipeline, sink = _pipeline(settings, StubBackend())
        result = await pipeline.run(ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS"))

        assert result.sections_generated == 8
        assert result.input_word_count == 200
        assert 4750 <= result.output_word_count <= 5250
        assert result.output_word_count == count_words(result.expanded_text)
        assert not result.stopped_early
        assert result.stitch.skipped_reason == "no flagged sections"
        for name in STANDARD_NAMES:
            assert f"{name}\n\n" in result.expanded_text
        assert result.expanded_text.index("ABSTRACT") < result.expanded_text.index("CONCLUSION")

    @pytest.mark.asyncio
    async def test_event_order(self, settings, source_200):
        pipeline, sink = _pipeline(settings, StubBackend())
        await pipeline.run(ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS"))

        kinds = [e.kind for e in sink.events]
        assert kinds == ["progress"] * 3 + ["outline"] + ["section_complete"] * 8 + ["complete"]
        sections = sink.of_kind("section_complete")
        assert [e.section_name for e in sections] == STANDARD_NAMES
        assert [e.percent for e in sections] == [13, 25, 38, 50, 63, 75, 88, 100]
        assert sections[-1].cumulative_word_count == 5075
        assert sections[0].section_text.startswith("ABSTRACT\n\n")
        complete = sink.of_kind("complete")[0]
        assert complete.total_sections == 8
        assert complete.percent == 100

    @pytest.mark.asyncio
    async def test_later_sections_see_earlier_ones(self, settings, source_200):
        backend = StubBackend()
        pipeline, _ = _pipeline(settings, backend)
        await pipeline.run(ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS"))

        conclusion_prompt = backend.prompts_containing("SECTION TO WRITE NOW: CONCLUSION")[0]
        assert "=== CHAPTER 4: IMPLICATIONS (ESTABLISHED - DO NOT RESTATE) ===" in conclusion_prompt
        assert "SETTLED - DO NOT RE-ARGUE" in conclusion_prompt
        abstract_prompt = backend.prompts_containing("SECTION TO WRITE NOW: ABSTRACT")[0]
        assert "[This is the first section" in abstract_prompt

    @pytest.mark.asyncio
    async def test_default_target_without_instructions(self, settings, source_200):
        pipeline, sink = _pipeline(settings, StubBackend())
        result = await pipeline.run(ExpansionRequest(text=source_200))
        # max(10 x 200 words, 5000)
        assert sink.events[0].message == "Planned 8 sections for a 5000 word target"
        assert result.sections_generated == 8

    @pytest.mark.asyncio
    async def test_explicit_structure(self, settings, source_200):
        instructions = "EXPAND TO 1200 WORDS\nINTRODUCTION (400 words)\nCHAPTER 1: Background\nCONCLUSION (400 words)"
        pipeline, sink = _pipeline(settings, StubBackend())
        result = await pipeline.run(ExpansionRequest(text=source_200, instructions=instructions))

        assert result.sections_generated == 3
        sections = sink.of_kind("section_complete")
        assert {e.section_name: e.word_count for e in sections} == {
            "INTRODUCTION": 400,
            "CHAPTER 1: Background": 400,
            "CONCLUSION": 400,
        }

    @pytest.mark.asyncio
    async def test_max_words_ceiling_stops_early(self, settings, source_200, tmp_path):
        status_store = SQLiteJobStatusStore(str(tmp_path / "expansions.db"))
        pipeline, sink = _pipeline(settings, StubBackend(), status_store=status_store)
        request = ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS", max_words=3000)
        result = await pipeline.run(request)

        assert result.stopped_early
        assert result.sections_generated == 5
        assert len(sink.of_kind("complete")) == 1
        assert sink.events[-1].kind == "complete"
        assert await status_store.get_status(request.job_id) == JobStatus.STOPPED

    @pytest.mark.asyncio
    async def test_sections_persisted(self, settings, source_200, tmp_path):
        db_path = str(tmp_path / "expansions.db")
        section_store = SQLiteSectionStore(db_path)
        status_store = SQLiteJobStatusStore(db_path)
        pipeline, _ = _pipeline(settings, StubBackend(), section_store=section_store, status_store=status_store)
        request = ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS")
        await pipeline.run(request)

        records = await section_store.load_sections(request.job_id)
        assert [r.record_id for r in records] == [f"{request.job_id}-{i}" for i in range(8)]
        assert [r.section_name for r in records] == STANDARD_NAMES
        assert all(r.delta.status == CommitmentStatus.COMPLIANT for r in records)
        assert await status_store.get_status(request.job_id) == JobStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_persistence_failure_does_not_abort(self, settings, source_200):
        pipeline, sink = _pipeline(settings, StubBackend(), section_store=_BrokenStore())
        result = await pipeline.run(ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS"))
        assert result.sections_generated == 8
        assert sink.events[-1].kind == "complete"

    @pytest.mark.asyncio
    async def test_provider_failure_emits_error_and_raises(self, settings, source_200, tmp_path):
        status_store = SQLiteJobStatusStore(str(tmp_path / "expansions.db"))
        backend = StubBackend(fail_on="SECTION TO WRITE NOW: CHAPTER 2")
        pipeline, sink = _pipeline(settings, backend, status_store=status_store)
        request = ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS")

        with pytest.raises(ProviderTransportError):
            await pipeline.run(request)

        errors = sink.of_kind("error")
        assert len(errors) == 1
        assert errors[0].stage == PipelineStage.GENERATION
        assert sink.of_kind("complete") == []
        assert len(sink.of_kind("section_complete")) == 4
        assert await status_store.get_status(request.job_id) == JobStatus.FAILED

    @pytest.mark.asyncio
    async def test_flagged_sections_are_stitched(self, settings, source_200):
        delta = {"conflictsDetected": ["Overstates the thesis"], "commitmentStatus": "VIOLATION"}
        stitch = {
            "repairs": [
                {
                    "sectionName": "INTRODUCTION",
                    "problematicText": "Cooperative institutions coordinate expectations",
                    "repairedText": "Cooperative institutions sometimes coordinate expectations",
                    "reason": "hedge an overstated claim",
                }
            ]
        }
        backend = StubBackend(delta=delta, stitch=stitch)
        pipeline, sink = _pipeline(settings, backend)
        result = await pipeline.run(ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS"))

        assert result.stitch.repairs_applied == 1
        assert result.expanded_text.count("Cooperative institutions sometimes coordinate expectations") == 1
        stitch_progress = [e for e in sink.of_kind("progress") if e.stage == PipelineStage.STITCH]
        assert stitch_progress[0].message == "Stitching: repairing 8 flagged sections for consistency"
        # Section events report pre-repair text.
        intro_event = sink.of_kind("section_complete")[1]
        assert "sometimes" not in intro_event.section_text

    @pytest.mark.asyncio
    async def test_two_tier_source_replaces_raw_text(self, source_200):
        settings = fast_settings(two_tier_threshold_words=1000, chunk_size_words=1000)
        backend = StubBackend()
        pipeline, sink = _pipeline(settings, backend)
        big_source = filler_words(1500)
        result = await pipeline.run(ExpansionRequest(text=big_source, instructions="EXPAND TO 5000 WORDS"))

        assert len(backend.prompts_containing("You are analyzing chunk")) == 2
        outline_prompt = backend.prompts_containing("You are planning a detailed outline")[0]
        assert "# META-SKELETON (Unified structure for 1500 word source)" in outline_prompt
        assert result.input_word_count == 1500
        skeleton_percents = [
            e.percent for e in sink.of_kind("progress") if e.stage == PipelineStage.SKELETON and e.percent is not None
        ]
        assert skeleton_percents == [0, 20, 45]

    @pytest.mark.asyncio
    async def test_structure_failure_after_two_tier_names_skeleton_stage(self, monkeypatch):
        def broken_structure(*args, **kwargs):
            raise ValueError("no sections planned")

        monkeypatch.setattr("expander.orchestration.pipeline.build_structure", broken_structure)
        settings = fast_settings(two_tier_threshold_words=1000, chunk_size_words=1000)
        pipeline, sink = _pipeline(settings, StubBackend())

        with pytest.raises(ValueError):
            await pipeline.run(ExpansionRequest(text=filler_words(1500), instructions="EXPAND TO 5000 WORDS"))

        errors = sink.of_kind("error")
        assert len(errors) == 1
        assert errors[0].stage == PipelineStage.SKELETON

    @pytest.mark.asyncio
    async def test_structure_failure_without_two_tier_names_parse_stage(self, settings, source_200, monkeypatch):
        def broken_structure(*args, **kwargs):
            raise ValueError("no sections planned")

        monkeypatch.setattr("expander.orchestration.pipeline.build_structure", broken_structure)
        pipeline, sink = _pipeline(settings, StubBackend())

        with pytest.raises(ValueError):
            await pipeline.run(ExpansionRequest(text=source_200, instructions="EXPAND TO 5000 WORDS"))

        assert sink.of_kind("error")[0].stage == PipelineStage.PARSE
