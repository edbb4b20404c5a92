"""Delta-audit and stitch-repair prompts."""

from __future__ import annotations

from typing import Sequence

from expander.models import DeltaReport, DocumentSkeleton
from expander.writing.prompts.base import JSON_ONLY_RULE

DELTA_MAX_ASSERTS = 10
DELTA_MAX_REJECTS = 5
DELTA_MAX_TERMS = 10


def delta_prompt(section_name: str, section_text: str, section_word_count: int, skeleton: DocumentSkeleton) -> str:
    ledger = skeleton.commitments
    terms = list(skeleton.key_terms)[:DELTA_MAX_TERMS]
    return "\n".join([
        "Analyze this generated section and produce a DELTA REPORT.",
        "",
        f"SECTION: {section_name}",
        f"SECTION TEXT ({section_word_count} words):",
        section_text,
        "",
        "DOCUMENT SKELETON (for reference):",
        f"THESIS: {skeleton.thesis}",
        f"ASSERTS: {'; '.join(ledger.asserts[:DELTA_MAX_ASSERTS])}",
        f"REJECTS: {'; '.join(ledger.rejects[:DELTA_MAX_REJECTS])}",
        f"KEY TERMS: {', '.join(terms)}",
        "",
        "Report as JSON:",
        "- newClaims: claims introduced in THIS section that are not in the skeleton",
        "- termsUsed: skeleton key terms used in this section",
        "- conflictsDetected: statements that contradict the skeleton's assertions, affirm its",
        "  rejections, or redefine its terms (empty list if none)",
        "- commitmentStatus: COMPLIANT if there are no conflicts, VIOLATION otherwise",
        "",
        JSON_ONLY_RULE,
    ])


def stitch_prompt(skeleton: DocumentSkeleton, reports: Sequence[DeltaReport]) -> str:
    ledger = skeleton.commitments
    summary = "\n".join(
        f"[{r.section_name}] Status: {r.status.value} | New claims: {len(r.new_claims)} | "
        f"Conflicts: {'; '.join(r.conflicts_detected) or 'none'}"
        for r in reports
    )
    flagged = "\n".join(
        f"- {r.section_name}: {'; '.join(r.conflicts_detected) or r.status.value}"
        for r in reports
        if r.is_flagged
    )
    terms = "; ".join(f"{term}: {definition}" for term, definition in skeleton.key_terms.items())
    return "\n".join([
        "You are performing the STITCH PASS on a generated document.",
        "",
        "DOCUMENT SKELETON:",
        f"THESIS: {skeleton.thesis}",
        f"KEY TERMS: {terms}",
        f"ASSERTS: {'; '.join(ledger.asserts)}",
        f"REJECTS: {'; '.join(ledger.rejects)}",
        "",
        "DELTA REPORTS FROM ALL SECTIONS:",
        summary,
        "",
        "FLAGGED SECTIONS WITH CONFLICTS:",
        flagged,
        "",
        "For each flagged section give a MINIMAL repair: fix only the contradicting sentence.",
        "problematicText must be copied EXACTLY as it appears in the section.",
        "",
        "Report as JSON:",
        "- repairs: list of {sectionName, problematicText, repairedText, reason}",
        "- terminologyDrift: list of {term, correctDefinition, driftedUsage, affectedSections}",
        "- redundancies: list of {claim, appearsIn, recommendation}",
        "",
        JSON_ONLY_RULE,
    ])
