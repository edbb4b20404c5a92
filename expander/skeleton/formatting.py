"""Render a document skeleton as the constraint block injected into prompts."""

from __future__ import annotations

from expander.models import DocumentSkeleton
from expander.writing.prompts.base import RULE


def format_skeleton_for_injection(skeleton: DocumentSkeleton) -> str:
    """Return the skeleton constraint block, or "" when there is nothing to enforce."""
    if skeleton.is_empty:
        return ""
    ledger = skeleton.commitments
    parts = [
        RULE,
        "DOCUMENT SKELETON (maintain consistency with this)",
        RULE,
        "",
        f"THESIS: {skeleton.thesis}",
    ]
    if skeleton.outline:
        parts.extend(["", "ARGUMENT OUTLINE:"])
        parts.extend(f"  {i + 1}. {claim}" for i, claim in enumerate(skeleton.outline))
    if skeleton.key_terms:
        parts.extend(["", "KEY TERMS (use consistently):"])
        parts.extend(f"  - {term}: {definition}" for term, definition in skeleton.key_terms.items())
    if not ledger.is_empty:
        parts.extend(["", "COMMITMENTS:"])
        if ledger.asserts:
            parts.append(f"  ASSERTS: {'; '.join(ledger.asserts)}")
        if ledger.rejects:
            parts.append(f"  REJECTS (never affirm these): {'; '.join(ledger.rejects)}")
        if ledger.assumes:
            parts.append(f"  ASSUMES: {'; '.join(ledger.assumes)}")
    if skeleton.entities:
        parts.extend(["", f"ENTITIES (name identically throughout): {', '.join(skeleton.entities)}"])
    parts.extend([
        "",
        "Do not contradict any assertion above, do not affirm any rejection,",
        "and do not redefine any key term.",
        RULE,
    ])
    return "\n".join(parts)
