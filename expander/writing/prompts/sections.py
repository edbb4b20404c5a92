"""Section prompt families: expository (begin/continue) and dialogue (begin/continue)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from expander.models import ParsedInstructions
from expander.writing.prompts.base import (
    NO_HEADING_RULE,
    NO_METADATA_RULE,
    PLAIN_TEXT_RULE,
    banned_phrases_rule,
    banner,
    style_requirements,
)

# Above this many remaining words the model is told not to wrap up yet.
_MORE_TO_FOLLOW_WORDS = 4000


@dataclass(frozen=True)
class SectionPromptContext:
    """Everything a section prompt may draw on for one generation call."""

    section_name: str
    target_words: int
    words_to_request: int
    words_so_far: int
    source_text: str
    outline: str
    prior_sections_summary: str
    instructions: str
    parsed: ParsedInstructions
    points_covered: Sequence[str] = ()
    skeleton_block: str = ""
    last_paragraphs: str = ""

    @property
    def words_remaining(self) -> int:
        return max(0, self.target_words - self.words_so_far)


def _settled_points_block(points: Sequence[str]) -> str:
    if not points:
        return ""
    numbered = "\n".join(f"  {i + 1}. {point}" for i, point in enumerate(points))
    return "\n".join([
        banner("CONCEPTS ALREADY ESTABLISHED (SETTLED - DO NOT RE-ARGUE)"),
        "The reader already understands these. Citing them as premises is fine;",
        "re-explaining or re-arguing them is forbidden.",
        numbered,
        "",
        "Introduce concepts that DEPEND ON the above but were not yet stated.",
    ])


def _participants(parsed: ParsedInstructions, fallback: str) -> str:
    return " and ".join(parsed.dialogue_participants) if parsed.dialogue_participants else fallback


def _ending_rule(ctx: SectionPromptContext) -> str:
    if ctx.words_remaining > _MORE_TO_FOLLOW_WORDS:
        return "Do NOT conclude yet; more content will follow."
    return "You may close with a concluding paragraph if appropriate."


def expository_begin_prompt(ctx: SectionPromptContext) -> str:
    style = style_requirements(ctx.parsed)
    parts = [
        "You are writing ONE section of a unified long-form scholarly document.",
        "",
    ]
    if ctx.skeleton_block:
        parts.extend([ctx.skeleton_block, ""])
    parts.extend([
        banner("PRIMARY SOURCE MATERIAL"),
        ctx.source_text,
        "",
        "FULL DOCUMENT OUTLINE:",
        ctx.outline,
        "",
        banner("ALREADY ESTABLISHED IN PREVIOUS SECTIONS (settled ground)"),
        ctx.prior_sections_summary or "[This is the first section: establish the foundational concepts]",
        "",
        _settled_points_block(ctx.points_covered),
        "",
        banner(f"SECTION TO WRITE NOW: {ctx.section_name}"),
        f"TARGET LENGTH: {ctx.target_words} words",
        f"THIS CHUNK: approximately {ctx.words_to_request} words to START this section",
        "",
    ])
    if style:
        parts.extend(["STYLE REQUIREMENTS:", *style, ""])
    parts.extend([
        "USER'S INSTRUCTIONS:",
        ctx.instructions or "scholarly expansion",
        "",
        banner("RULES"),
        "1. Introduce at least one concept, distinction or analytical tool absent from every previous section.",
        "2. Build on earlier concepts as settled premises; do not re-explain them.",
        "3. Do not restate the central thesis; develop a new facet that earlier sections make visible.",
        f"4. {banned_phrases_rule()}",
        "5. If this section could be swapped with another unnoticed, it has failed.",
        "6. Ground the writing in the primary source material. No filler.",
        f"7. {PLAIN_TEXT_RULE}",
        f"8. {NO_HEADING_RULE}",
        "9. End at a natural paragraph break, ready for continuation.",
        f"10. {NO_METADATA_RULE}",
        "",
        f"Write the BEGINNING of this section ({ctx.words_to_request} words):",
    ])
    return "\n".join(parts)


def expository_continue_prompt(ctx: SectionPromptContext) -> str:
    parts = [
        "You are CONTINUING a section of a unified long-form scholarly document.",
        "",
    ]
    if ctx.skeleton_block:
        parts.extend([ctx.skeleton_block, ""])
    parts.extend([
        banner("PRIMARY SOURCE MATERIAL"),
        ctx.source_text[:4000],
        "",
        f"SECTION: {ctx.section_name}",
        f"WORDS WRITTEN SO FAR: {ctx.words_so_far}",
        f"WORDS STILL NEEDED: {ctx.words_remaining}",
        f"TARGET TOTAL: {ctx.target_words} words",
        "",
        "LAST PART OF WHAT YOU WROTE (continue from here):",
        '"""',
        ctx.last_paragraphs,
        '"""',
        "",
        "USER'S INSTRUCTIONS:",
        ctx.instructions or "scholarly expansion",
        "",
        _settled_points_block(ctx.points_covered),
        "",
        "REQUIREMENTS:",
        f"1. Write approximately {ctx.words_to_request} MORE words continuing this section.",
        "2. Continue exactly where the text left off; keep the flow.",
        "3. Do not repeat what was already written; bring in new points from different source passages.",
        "4. No lead-ins such as 'Continuing from...'.",
        f"5. {banned_phrases_rule()}",
        f"6. {PLAIN_TEXT_RULE}",
        f"7. {NO_METADATA_RULE}",
        f"8. {_ending_rule(ctx)}",
        "",
        f"Continue writing NOW ({ctx.words_to_request} more words):",
    ])
    return "\n".join(parts)


def dialogue_begin_prompt(ctx: SectionPromptContext) -> str:
    speakers = _participants(ctx.parsed, "the characters specified")
    return "\n".join([
        "You are writing a DIALOGUE: an actual conversation with back-and-forth exchanges.",
        "",
        "TOPIC/THEME:",
        ctx.source_text,
        "",
        f"PARTICIPANTS: {speakers}",
        "",
        ctx.skeleton_block,
        "",
        "DOCUMENT OUTLINE:",
        ctx.outline,
        "",
        "PREVIOUS SECTIONS:",
        ctx.prior_sections_summary or "[This is the beginning]",
        "",
        banner(f"SECTION: {ctx.section_name}"),
        f"TARGET LENGTH: {ctx.target_words} words",
        f"THIS CHUNK: approximately {ctx.words_to_request} words",
        "",
        "USER'S INSTRUCTIONS:",
        ctx.instructions,
        "",
        "FORMAT REQUIREMENTS:",
        "1. Write the dialogue itself, not an essay about a dialogue.",
        "2. Each turn starts on a new line: SPEAKER NAME IN CAPITALS, a colon, then the words spoken.",
        "3. Speakers respond to, challenge and build on each other with substantive exchanges.",
        "4. Each speaker keeps an authentic voice and perspective.",
        "5. No stage directions, narration or prose paragraphs between turns.",
        "",
        f"Write the DIALOGUE now ({ctx.words_to_request} words of conversation):",
    ])


def dialogue_continue_prompt(ctx: SectionPromptContext) -> str:
    speakers = _participants(ctx.parsed, "the participants")
    return "\n".join([
        f"You are CONTINUING a dialogue between {speakers}.",
        "",
        f"SECTION: {ctx.section_name}",
        f"WORDS WRITTEN SO FAR: {ctx.words_so_far}",
        f"WORDS STILL NEEDED: {ctx.words_remaining}",
        f"TARGET TOTAL: {ctx.target_words} words",
        "",
        "LAST PART OF THE DIALOGUE (continue from here):",
        '"""',
        ctx.last_paragraphs,
        '"""',
        "",
        "USER'S INSTRUCTIONS:",
        ctx.instructions,
        "",
        "REQUIREMENTS:",
        f"1. Write approximately {ctx.words_to_request} MORE words of dialogue.",
        "2. Continue the conversation naturally from where it stopped.",
        "3. Keep the format SPEAKER NAME: words spoken.",
        "4. Do not repeat lines already spoken; no prose or stage directions.",
        f"5. {'Do NOT end the conversation yet; more dialogue will follow.' if ctx.words_remaining > _MORE_TO_FOLLOW_WORDS else 'You may bring the dialogue to a natural close if appropriate.'}",
        "",
        f"Continue the DIALOGUE now ({ctx.words_to_request} more words):",
    ])


def build_section_prompt(ctx: SectionPromptContext, *, first_call: bool) -> str:
    if ctx.parsed.dialogue_mode:
        return dialogue_begin_prompt(ctx) if first_call else dialogue_continue_prompt(ctx)
    return expository_begin_prompt(ctx) if first_call else expository_continue_prompt(ctx)
