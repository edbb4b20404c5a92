"""Outline planning prompt."""

from __future__ import annotations

from typing import Sequence

from expander.models import SectionSpec
from expander.writing.prompts.base import banned_phrases_rule, banner


def outline_prompt(
    source_text: str,
    sections: Sequence[SectionSpec],
    target_word_count: int,
    instructions: str,
    skeleton_block: str = "",
) -> str:
    structure = "\n".join(f"- {s.name}: {s.word_count} words" for s in sections)
    parts = [
        "You are planning a detailed outline for a long-form scholarly document.",
        "",
        banner("PRIMARY SOURCE MATERIAL"),
        source_text,
        "",
        f"TARGET: {target_word_count} words",
        "",
        "STRUCTURE (each section with its word allocation):",
        structure,
        "",
        "USER'S INSTRUCTIONS:",
        instructions or "scholarly expansion",
    ]
    if skeleton_block:
        parts.extend(["", skeleton_block])
    parts.extend([
        "",
        banner("PROGRESSIVE ARGUMENT (MANDATORY)"),
        "Each section must be a prerequisite for the next. If two sections could be swapped",
        "without downstream sections becoming unintelligible, the outline has failed.",
        "",
        "For each section give:",
        "1. UNIQUE CONCEPTUAL CONTRIBUTION: the new concept, distinction or tool it introduces.",
        "2. PREREQUISITE DEPENDENCY: the concept from an earlier section it relies on (first section excepted).",
        "3. KEY POINTS (3-5): each drawn from a different passage of the source.",
        "4. WHAT THE READER KNOWS AFTER THIS SECTION that they could not know before.",
        "",
        "The central thesis appears once, in the introduction; later sections develop different facets.",
        banned_phrases_rule(),
        "",
        "Return the complete progressive outline.",
    ])
    return "\n".join(parts)
