"""Delta audit: what a finished section added and whether it broke the skeleton."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from expander.llm.base_client import GenerationBackend
from expander.llm.errors import ProviderError
from expander.llm.structured import parse_structured, string_items
from expander.models import CommitmentStatus, DeltaReport, DocumentSkeleton, SettingsConfig
from expander.utils.text import count_words, truncate_words
from expander.writing.prompts.audit import delta_prompt

logger = logging.getLogger(__name__)

# Rejections shorter than this are too generic to match verbatim.
MIN_REJECT_CHARS = 8


class _DeltaOut(BaseModel):
    newClaims: List[str] = Field(default_factory=list)
    termsUsed: List[str] = Field(default_factory=list)
    conflictsDetected: List[str] = Field(default_factory=list)
    commitmentStatus: Any = None

    # Lists are coerced independently; a malformed field never invalidates the others.
    @field_validator("newClaims", "termsUsed", "conflictsDetected", mode="before")
    @classmethod
    def _lenient_list(cls, v: Any) -> List[str]:
        return string_items(v)


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def find_affirmed_rejections(content: str, skeleton: DocumentSkeleton) -> List[str]:
    """Skeleton rejections that appear verbatim (case and whitespace aside) in *content*."""
    haystack = _normalize(content)
    hits = []
    for proposition in skeleton.commitments.rejects:
        needle = _normalize(proposition).rstrip(".")
        if len(needle) >= MIN_REJECT_CHARS and needle in haystack:
            hits.append(f"Affirms rejected proposition: {proposition}")
    return hits


def _status(raw: Any) -> CommitmentStatus:
    if not isinstance(raw, str) or not raw.strip():
        return CommitmentStatus.UNKNOWN
    try:
        return CommitmentStatus(raw.strip().upper())
    except ValueError:
        return CommitmentStatus.UNKNOWN


class DeltaAuditor:
    def __init__(self, backend: GenerationBackend, settings: SettingsConfig):
        self.backend = backend
        self.settings = settings

    async def audit(self, content: str, section_name: str, skeleton: DocumentSkeleton) -> DeltaReport:
        local_conflicts = find_affirmed_rejections(content, skeleton)
        out = await self._extract(content, section_name, skeleton)

        if out is None:
            status = CommitmentStatus.VIOLATION if local_conflicts else CommitmentStatus.EXTRACTION_FAILED
            return DeltaReport(section_name=section_name, conflicts_detected=tuple(local_conflicts), status=status)

        conflicts = [c for c in out.conflictsDetected if c.strip()]
        conflicts.extend(c for c in local_conflicts if c not in conflicts)
        status = CommitmentStatus.VIOLATION if local_conflicts else _status(out.commitmentStatus)
        report = DeltaReport(
            section_name=section_name,
            new_claims=tuple(out.newClaims),
            terms_used=tuple(out.termsUsed),
            conflicts_detected=tuple(conflicts),
            status=status,
        )
        if report.conflicts_detected:
            logger.warning("Conflicts in %s: %s", section_name, "; ".join(report.conflicts_detected))
        logger.info(
            "Delta for %s: %d new claims, %d terms used, %s",
            section_name, len(report.new_claims), len(report.terms_used), report.status.value,
        )
        return report

    async def _extract(self, content: str, section_name: str, skeleton: DocumentSkeleton) -> Optional[_DeltaOut]:
        max_words = self.settings.expansion.audit_max_words
        agent = self.settings.agent("delta")
        try:
            result = await self.backend.generate(
                delta_prompt(section_name, truncate_words(content, max_words), count_words(content), skeleton),
                max_tokens=agent.max_tokens,
                temperature=agent.temperature,
                json_schema=_DeltaOut.model_json_schema(),
            )
        except ProviderError as exc:
            logger.error("Delta report failed for %s: %s", section_name, exc)
            return None
        out = parse_structured(result.text, _DeltaOut)
        if out is None:
            logger.warning("Delta report for %s was not valid JSON", section_name)
        return out
