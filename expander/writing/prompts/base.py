"""Prompt fragments shared by every generation stage."""

from __future__ import annotations

from typing import List

from expander.models import ParsedInstructions

RULE = "=" * 63

BANNED_TRANSITIONS = (
    "furthermore",
    "this analysis extends to",
    "as discussed",
    "building on the previous",
    "as we have seen",
)

NO_METADATA_RULE = (
    "Do NOT include planning markers in the output (no 'UNIQUE CONCEPTUAL CONTRIBUTION:', "
    "'PREREQUISITE DEPENDENCY:', 'KEY POINTS:', 'WHAT THE READER KNOWS AFTER THIS SECTION:', "
    "'SECTION SUMMARY:'). Do NOT include word-count annotations. Write only the prose itself."
)

NO_HEADING_RULE = (
    "Do NOT begin with the section title; the heading is inserted automatically. "
    "Begin directly with the first sentence of the section content."
)

PLAIN_TEXT_RULE = "No markdown formatting: plain text only."

JSON_ONLY_RULE = "Return ONLY valid JSON. No markdown, no explanation."


def banner(title: str) -> str:
    return f"{RULE}\n{title}\n{RULE}"


def banned_phrases_rule() -> str:
    quoted = ", ".join(f'"{phrase}"' for phrase in BANNED_TRANSITIONS)
    return (
        f"BANNED PHRASES: {quoted}. They are cosmetic transitions that mask repetition; "
        "show instead why the previous section's conclusion necessitates this inquiry."
    )


def style_requirements(parsed: ParsedInstructions) -> List[str]:
    """Style, citation and authority guidance derived from parsed instructions."""
    lines: List[str] = []
    if parsed.academic_register:
        lines.append("Use formal academic register throughout.")
    if parsed.no_bullet_points:
        lines.append("Write in full prose paragraphs only; NO bullet points.")
    if parsed.internal_subsections:
        lines.append("Include internal subsections with clear headings.")
    if parsed.citations is not None:
        timeframe = f" from the {parsed.citations.timeframe}" if parsed.citations.timeframe else ""
        lines.append(
            f"Reference relevant academic sources (aim for {parsed.citations.count} sources"
            f"{timeframe} across the full document)."
        )
    if parsed.authorities:
        lines.append(f"Engage with these authors where relevant: {', '.join(parsed.authorities)}.")
    for constraint in parsed.constraints:
        lines.append(f"Constraint: {constraint}")
    return lines
