"""Section generation with a bounded continuation loop.

One section is written in chunks: a "begin" call, then "continue" calls that
see only the last few paragraphs, until the section reaches the convergence
ratio of its target (or the last response was cut off by the length limit)
or the attempt ceiling is hit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from expander.llm.base_client import Generation, GenerationBackend
from expander.models import DocumentSkeleton, ParsedInstructions, SectionResult, SettingsConfig
from expander.skeleton.formatting import format_skeleton_for_injection
from expander.utils.text import count_words, last_paragraphs
from expander.writing.prompts.sections import SectionPromptContext, build_section_prompt
from expander.writing.text_tools import extract_key_points, relevant_source_excerpt, strip_metadata

logger = logging.getLogger(__name__)


class SectionGenerator:
    def __init__(self, backend: GenerationBackend, settings: SettingsConfig):
        self.backend = backend
        self.settings = settings

    async def generate(
        self,
        name: str,
        target_words: int,
        source: str,
        outline: str,
        prior_sections_summary: str,
        parsed: ParsedInstructions,
        raw_instructions: str,
        points_covered: Sequence[str] = (),
        skeleton: DocumentSkeleton | None = None,
    ) -> SectionResult:
        cfg = self.settings.expansion
        if target_words <= 0:
            logger.info("[%s] Zero-word allocation, skipping generation", name)
            return SectionResult(content="", attempts=0, converged=True)

        skeleton_block = format_skeleton_for_injection(skeleton) if skeleton is not None else ""
        excerpt = relevant_source_excerpt(source, name, outline, cfg.excerpt_max_words)
        threshold = target_words * cfg.convergence_ratio

        accumulated = ""
        words = 0
        attempts = 0
        truncated = False
        while (words < threshold or truncated) and attempts < cfg.max_attempts_per_section:
            remaining = target_words - words
            request = min(max(remaining, cfg.min_words_per_call), cfg.max_words_per_call)
            ctx = SectionPromptContext(
                section_name=name,
                target_words=target_words,
                words_to_request=request,
                words_so_far=words,
                source_text=excerpt,
                outline=outline,
                prior_sections_summary=prior_sections_summary,
                instructions=raw_instructions,
                parsed=parsed,
                points_covered=tuple(points_covered),
                skeleton_block=skeleton_block,
                last_paragraphs=last_paragraphs(accumulated, cfg.continuation_paragraphs),
            )
            generation = await self._call(build_section_prompt(ctx, first_call=attempts == 0), request, name)
            chunk = generation.text.strip()
            if chunk:
                accumulated = f"{accumulated}\n\n{chunk}" if accumulated else chunk
            words = count_words(accumulated)
            attempts += 1
            truncated = generation.truncated
            logger.debug(
                "[%s] Chunk %d: %d words (total %d/%d, stop=%s)",
                name, attempts, count_words(chunk), words, target_words, generation.stop_reason.value,
            )
            if truncated:
                logger.info("[%s] Response truncated by length limit, continuing", name)
            if (words < threshold or truncated) and attempts < cfg.max_attempts_per_section:
                await asyncio.sleep(cfg.continuation_delay_seconds)

        content = strip_metadata(accumulated)
        final_words = count_words(content)
        converged = final_words >= threshold
        if not converged:
            logger.warning(
                "[%s] Stopped after %d attempts at %d of %d words",
                name, attempts, final_words, target_words,
            )
        else:
            logger.info("[%s] Complete: %d words in %d chunks (target %d)", name, final_words, attempts, target_words)
        return SectionResult(
            content=content,
            key_claims=extract_key_points(content, name, cfg.max_key_claims),
            attempts=attempts,
            converged=converged,
        )

    async def _call(self, prompt: str, requested_words: int, name: str) -> Generation:
        """One generation call, retried when the response is far shorter than requested."""
        cfg = self.settings.expansion
        agent = self.settings.agent("section")
        minimum = requested_words * cfg.underlength_ratio
        best = await self.backend.generate(prompt, max_tokens=agent.max_tokens, temperature=agent.temperature)
        for retry in range(cfg.underlength_retries):
            if count_words(best.text) >= minimum:
                break
            logger.warning(
                "[%s] Underlength response (%d of %d words), retry %d/%d",
                name, count_words(best.text), requested_words, retry + 1, cfg.underlength_retries,
            )
            candidate = await self.backend.generate(
                prompt, max_tokens=agent.max_tokens, temperature=agent.temperature
            )
            if count_words(candidate.text) > count_words(best.text):
                best = candidate
        return best
