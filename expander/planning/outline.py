"""Outline planning: one free-text call that fixes the progressive argument."""

from __future__ import annotations

import logging
from typing import Sequence

from expander.llm.base_client import GenerationBackend
from expander.models import SectionSpec, SettingsConfig
from expander.writing.prompts.outline import outline_prompt

logger = logging.getLogger(__name__)


class OutlinePlanner:
    def __init__(self, backend: GenerationBackend, settings: SettingsConfig):
        self.backend = backend
        self.settings = settings

    async def plan(
        self,
        source_text: str,
        sections: Sequence[SectionSpec],
        target_word_count: int,
        instructions: str,
        skeleton_block: str = "",
    ) -> str:
        """Return the outline text, carried unmodified into every section prompt."""
        agent = self.settings.agent("outline")
        result = await self.backend.generate(
            outline_prompt(source_text, sections, target_word_count, instructions, skeleton_block),
            max_tokens=agent.max_tokens,
            temperature=agent.temperature,
        )
        outline = result.text.strip()
        if not outline:
            logger.warning("Outline planner returned empty text; sections will rely on structure only")
            outline = "\n".join(f"- {s.name}" for s in sections)
        logger.info("Outline planned for %d sections (%d chars)", len(sections), len(outline))
        return outline
