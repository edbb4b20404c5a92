"""Two-tier skeletonization for sources too large to read in one call.

The source is cut into fixed-size word chunks, each chunk gets a free-text
skeleton, and a final call merges them into one meta-skeleton. The combined
text replaces the raw source for every later stage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from expander.llm.base_client import GenerationBackend
from expander.models import PipelineStage, ProgressUpdate, SettingsConfig
from expander.orchestration.events import EventSink, NullSink
from expander.utils.text import chunk_words, count_words, round_half_up
from expander.writing.prompts.skeleton import chunk_skeleton_prompt, meta_skeleton_prompt

logger = logging.getLogger(__name__)

CHUNK_PERCENT_SPAN = 40
MERGE_PERCENT = 45


@dataclass(frozen=True)
class TieredSource:
    meta_skeleton: str
    chunk_skeletons: List[str] = field(default_factory=list)
    source_word_count: int = 0

    def as_source_text(self) -> str:
        chunks = "\n\n".join(
            f"## CHUNK {i + 1} SKELETON\n{skeleton}" for i, skeleton in enumerate(self.chunk_skeletons)
        )
        return (
            f"# META-SKELETON (Unified structure for {self.source_word_count} word source)\n\n"
            f"{self.meta_skeleton}\n\n# CHUNK SKELETONS\n\n{chunks}"
        )


class TwoTierSkeletonizer:
    def __init__(
        self,
        backend: GenerationBackend,
        settings: SettingsConfig,
        sink: Optional[EventSink] = None,
    ):
        self.backend = backend
        self.settings = settings
        self.sink = sink or NullSink()

    def applies_to(self, source_text: str) -> bool:
        return count_words(source_text) > self.settings.expansion.two_tier_threshold_words

    async def skeletonize(
        self,
        source_text: str,
        instructions: str,
        strongest_points: Optional[int] = None,
    ) -> TieredSource:
        cfg = self.settings.expansion
        total_words = count_words(source_text)
        chunks = chunk_words(source_text, cfg.chunk_size_words)
        logger.info("Two-tier skeletonization: %d words in %d chunks", total_words, len(chunks))

        chunk_agent = self.settings.agent("chunk_skeleton")
        chunk_skeletons: List[str] = []
        for i, chunk in enumerate(chunks):
            await self.sink.emit(ProgressUpdate(
                stage=PipelineStage.SKELETON,
                message=f"Skeletonizing chunk {i + 1} of {len(chunks)}",
                percent=round_half_up(i / len(chunks) * CHUNK_PERCENT_SPAN),
            ))
            result = await self.backend.generate(
                chunk_skeleton_prompt(chunk, i, len(chunks), instructions),
                max_tokens=chunk_agent.max_tokens,
                temperature=chunk_agent.temperature,
            )
            chunk_skeletons.append(result.text.strip())
            logger.debug("Chunk %d skeleton: %d words", i + 1, count_words(result.text))

        await self.sink.emit(ProgressUpdate(
            stage=PipelineStage.SKELETON,
            message="Merging chunk skeletons into meta-skeleton",
            percent=MERGE_PERCENT,
        ))
        points = strongest_points or cfg.default_strongest_points
        meta_agent = self.settings.agent("meta_skeleton")
        meta = await self.backend.generate(
            meta_skeleton_prompt(chunk_skeletons, instructions, total_words, points),
            max_tokens=meta_agent.max_tokens,
            temperature=meta_agent.temperature,
        )
        logger.info("Meta-skeleton ready: %d words", count_words(meta.text))
        return TieredSource(
            meta_skeleton=meta.text.strip(),
            chunk_skeletons=chunk_skeletons,
            source_word_count=total_words,
        )
