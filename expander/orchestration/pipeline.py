"""Expansion pipeline: parse -> skeleton -> outline -> sections -> stitch -> assemble.

Stages run strictly in order within one asyncio task. Every stage works from
the previous stage's output plus the source text; the only shared state is the
per-job ``JobAccumulator``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional

from expander.assembly.assembler import assemble
from expander.audit.delta import DeltaAuditor
from expander.audit.stitch import StitchRepairer
from expander.db.repositories import JobStatusStore, SectionStore
from expander.instructions.parser import InstructionParser
from expander.llm.base_client import GenerationBackend
from expander.models import (
    DeltaReport,
    DocumentSkeleton,
    ExpansionComplete,
    ExpansionFailed,
    ExpansionRequest,
    ExpansionResult,
    GeneratedSection,
    JobStatus,
    OutlineReady,
    ParsedInstructions,
    PipelineStage,
    ProgressUpdate,
    SectionComplete,
    SectionRecord,
    SectionSpec,
    SettingsConfig,
)
from expander.orchestration.context import JobAccumulator
from expander.orchestration.events import EventSink, NullSink
from expander.planning.outline import OutlinePlanner
from expander.planning.structure import build_structure, resolve_target
from expander.skeleton.extractor import SkeletonExtractor
from expander.skeleton.formatting import format_skeleton_for_injection
from expander.skeleton.two_tier import TwoTierSkeletonizer
from expander.utils import structured_log
from expander.utils.log_context import stage_context
from expander.utils.text import count_words, round_half_up
from expander.writing.section_generator import SectionGenerator

logger = logging.getLogger(__name__)


class ExpansionPipeline:
    def __init__(
        self,
        settings: SettingsConfig,
        backend: GenerationBackend,
        sink: Optional[EventSink] = None,
        section_store: Optional[SectionStore] = None,
        status_store: Optional[JobStatusStore] = None,
        parser: Optional[InstructionParser] = None,
    ):
        self.settings = settings
        self.backend = backend
        self.sink = sink or NullSink()
        self.section_store = section_store
        self.status_store = status_store
        # Shared across jobs run through this pipeline, so the parse cache is session-scoped.
        self.parser = parser or InstructionParser()
        self.two_tier = TwoTierSkeletonizer(backend, settings, self.sink)
        self.extractor = SkeletonExtractor(backend, settings)
        self.planner = OutlinePlanner(backend, settings)
        self.generator = SectionGenerator(backend, settings)
        self.auditor = DeltaAuditor(backend, settings)
        self.stitcher = StitchRepairer(backend, settings)
        self._stage = PipelineStage.PARSE

    async def run(self, request: ExpansionRequest) -> ExpansionResult:
        """Run one job to completion. Provider failures emit an error event and propagate."""
        structured_log.bind_job(request.job_id, self.backend.name)
        self._stage = PipelineStage.PARSE
        await self._set_status(request.job_id, JobStatus.RUNNING)
        try:
            result = await self._run(request)
        except Exception as exc:
            logger.error("Job %s failed during %s: %s", request.job_id, self._stage.value, exc)
            await self.sink.emit(ExpansionFailed(stage=self._stage, message=str(exc)))
            await self._set_status(request.job_id, JobStatus.FAILED)
            raise
        finally:
            structured_log.unbind_job()
        final = JobStatus.STOPPED if result.stopped_early else JobStatus.COMPLETED
        await self._set_status(request.job_id, final)
        return result

    async def _run(self, request: ExpansionRequest) -> ExpansionResult:
        started_at = time.perf_counter()
        cfg = self.settings.expansion
        instructions = request.instructions or ""
        raw_word_count = count_words(request.text)
        logger.info("Job %s: expanding %d words", request.job_id, raw_word_count)

        with stage_context(PipelineStage.PARSE.value, input_words=raw_word_count):
            parsed = self.parser.parse(instructions)
        if not self.parser.has_expansion_request(instructions):
            logger.info("Instructions carry no explicit expansion request")

        source = request.text
        if self.two_tier.applies_to(request.text):
            self._stage = PipelineStage.SKELETON
            with stage_context("two_tier", show_rule=True, input_words=raw_word_count):
                tiered = await self.two_tier.skeletonize(request.text, instructions, parsed.strongest_points)
            source = tiered.as_source_text()
            logger.info("Two-tier source ready: %d words of structured source", count_words(source))

        target = resolve_target(parsed, request.target_word_count, count_words(source), cfg)
        structure, target = build_structure(parsed, target, cfg)
        await self.sink.emit(ProgressUpdate(
            stage=PipelineStage.PARSE,
            message=f"Planned {len(structure)} sections for a {target} word target",
        ))

        self._stage = PipelineStage.SKELETON
        with stage_context(PipelineStage.SKELETON.value, show_rule=True):
            await self.sink.emit(ProgressUpdate(
                stage=PipelineStage.SKELETON,
                message="Extracting document skeleton (thesis, key terms, commitments, entities)",
            ))
            skeleton = await self.extractor.extract(request.text, instructions)
            await self.sink.emit(ProgressUpdate(
                stage=PipelineStage.SKELETON,
                message=(
                    f"Skeleton extracted: {len(skeleton.key_terms)} key terms, "
                    f"{len(skeleton.commitments.asserts)} commitments, {len(skeleton.entities)} entities"
                ),
            ))
        skeleton_block = format_skeleton_for_injection(skeleton)

        self._stage = PipelineStage.OUTLINE
        with stage_context(PipelineStage.OUTLINE.value, show_rule=True, sections=len(structure)):
            outline = await self.planner.plan(source, structure, target, instructions, skeleton_block)
        await self.sink.emit(OutlineReady(outline=outline, total_sections=len(structure)))

        self._stage = PipelineStage.GENERATION
        with stage_context(PipelineStage.GENERATION.value, show_rule=True, target_words=target):
            job, stopped_early = await self._generate_sections(
                request, structure, source, outline, parsed, skeleton
            )

        self._stage = PipelineStage.STITCH
        with stage_context(PipelineStage.STITCH.value, flagged=job.flagged_count):
            if job.flagged_count:
                await self.sink.emit(ProgressUpdate(
                    stage=PipelineStage.STITCH,
                    message=f"Stitching: repairing {job.flagged_count} flagged sections for consistency",
                ))
            sections, stitch = await self.stitcher.run(job.sections, job.delta_reports, skeleton)

        self._stage = PipelineStage.ASSEMBLY
        result = assemble(
            sections,
            raw_word_count,
            started_at,
            stitch=stitch,
            stopped_early=stopped_early,
        )
        await self.sink.emit(ExpansionComplete(
            total_sections=result.sections_generated,
            total_word_count=result.output_word_count,
        ))
        structured_log.log_job_result(
            input_words=result.input_word_count,
            output_words=result.output_word_count,
            sections=result.sections_generated,
            stopped_early=result.stopped_early,
            repairs_applied=stitch.repairs_applied,
            elapsed_ms=result.processing_time_ms,
        )
        logger.info(
            "Job %s complete: %d -> %d words, %d sections, %d repairs",
            request.job_id, result.input_word_count, result.output_word_count,
            result.sections_generated, stitch.repairs_applied,
        )
        return result

    async def _generate_sections(
        self,
        request: ExpansionRequest,
        structure: List[SectionSpec],
        source: str,
        outline: str,
        parsed: ParsedInstructions,
        skeleton: DocumentSkeleton,
    ) -> tuple[JobAccumulator, bool]:
        cfg = self.settings.expansion
        job = JobAccumulator(summary_max_words=cfg.summary_max_words)
        total = len(structure)
        for i, spec in enumerate(structure):
            if request.max_words and job.cumulative_word_count >= request.max_words:
                logger.info(
                    "Word ceiling reached: %d/%d words, stopping before %s",
                    job.cumulative_word_count, request.max_words, spec.name,
                )
                return job, True

            logger.info("Generating section %d/%d: %s (%d words)", i + 1, total, spec.name, spec.word_count)
            result = await self.generator.generate(
                spec.name,
                spec.word_count,
                source,
                outline,
                job.prior_sections_summary,
                parsed,
                request.instructions or "",
                job.points_covered,
                skeleton,
            )
            report = await self.auditor.audit(result.content, spec.name, skeleton)
            section = GeneratedSection(
                name=spec.name,
                content=result.content,
                target_words=spec.word_count,
                word_count=count_words(result.content),
            )
            job.record(section, result, report)
            structured_log.log_section(
                spec.name,
                target_words=spec.word_count,
                word_count=section.word_count,
                attempts=result.attempts,
                converged=result.converged,
                status=report.status.value,
            )
            await self._persist(request.job_id, i, section, report)
            await self.sink.emit(SectionComplete(
                section_name=spec.name,
                section_text=section.serialized(),
                index=i,
                total=total,
                word_count=section.word_count,
                cumulative_word_count=job.cumulative_word_count,
                percent=round_half_up((i + 1) / total * 100),
            ))
            if i < total - 1:
                await asyncio.sleep(cfg.section_delay_seconds)
        return job, False

    async def _persist(self, job_id: str, index: int, section: GeneratedSection, report: DeltaReport) -> None:
        if self.section_store is None:
            return
        record = SectionRecord(
            record_id=f"{job_id}-{index}",
            job_id=job_id,
            section_index=index,
            section_name=section.name,
            content=section.content,
            word_count=section.word_count,
            target_words=section.target_words,
            delta=report,
        )
        try:
            await self.section_store.save_section(record)
        except Exception as exc:
            logger.warning("Failed to persist section %d (%s): %s", index, section.name, exc)

    async def _set_status(self, job_id: str, status: JobStatus) -> None:
        if self.status_store is None:
            return
        try:
            await self.status_store.set_status(job_id, status)
        except Exception as exc:
            logger.warning("Failed to record status %s for job %s: %s", status.value, job_id, exc)
