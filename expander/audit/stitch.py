"""Stitch pass: one cross-section review that applies minimal textual repairs.

Runs only when at least one delta report is flagged. Failures never abort the
job; the document is simply assembled unrepaired.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from expander.llm.base_client import GenerationBackend
from expander.llm.structured import parse_structured
from expander.models import (
    DeltaReport,
    DocumentSkeleton,
    GeneratedSection,
    Redundancy,
    SettingsConfig,
    StitchRepair,
    StitchReport,
    TerminologyDrift,
)
from expander.utils.text import count_words
from expander.writing.prompts.audit import stitch_prompt

logger = logging.getLogger(__name__)


class _RepairOut(BaseModel):
    sectionName: str = ""
    problematicText: str = ""
    repairedText: str = ""
    reason: str = ""


class _DriftOut(BaseModel):
    term: str = ""
    correctDefinition: str = ""
    driftedUsage: str = ""
    affectedSections: List[str] = Field(default_factory=list)


class _RedundancyOut(BaseModel):
    claim: str = ""
    appearsIn: List[str] = Field(default_factory=list)
    recommendation: str = ""


class _StitchOut(BaseModel):
    repairs: List[_RepairOut] = Field(default_factory=list)
    terminologyDrift: List[_DriftOut] = Field(default_factory=list)
    redundancies: List[_RedundancyOut] = Field(default_factory=list)


def _locate(sections: Sequence[GeneratedSection], repair: StitchRepair) -> int:
    for i, section in enumerate(sections):
        if section.name == repair.section_name:
            return i
    if repair.section_name:
        for i, section in enumerate(sections):
            if section.serialized().startswith(repair.section_name):
                return i
    for i, section in enumerate(sections):
        if repair.problematic_text in section.content:
            return i
    return -1


def _replace_once(content: str, old: str, new: str) -> Optional[str]:
    """Replace the first occurrence of *old*; whitespace-tolerant when not found literally."""
    if old in content:
        return content.replace(old, new, 1)
    tokens = old.split()
    if not tokens:
        return None
    pattern = re.compile(r"\s+".join(re.escape(t) for t in tokens))
    match = pattern.search(content)
    if match is None:
        return None
    return content[: match.start()] + new + content[match.end():]


def apply_repairs(
    sections: Sequence[GeneratedSection], repairs: Sequence[StitchRepair]
) -> Tuple[List[GeneratedSection], int]:
    """Return (new section list, repairs applied). Untouched sections are carried over as-is."""
    repaired = list(sections)
    applied = 0
    for repair in repairs:
        if not repair.problematic_text or not repair.repaired_text:
            logger.info("Repair for %s has no text to replace, skipped", repair.section_name)
            continue
        idx = _locate(repaired, repair)
        if idx < 0:
            logger.info("Could not locate section for repair: %s", repair.section_name)
            continue
        section = repaired[idx]
        content = _replace_once(section.content, repair.problematic_text, repair.repaired_text)
        if content is None:
            logger.info(
                "Repair text not found in %s, skipped: %r", section.name, repair.problematic_text[:60]
            )
            continue
        repaired[idx] = section.model_copy(update={"content": content, "word_count": count_words(content)})
        applied += 1
        logger.info(
            "Repaired in %s: %r -> %r", section.name, repair.problematic_text[:60], repair.repaired_text[:60]
        )
    return repaired, applied


class StitchRepairer:
    def __init__(self, backend: GenerationBackend, settings: SettingsConfig):
        self.backend = backend
        self.settings = settings

    async def run(
        self,
        sections: Sequence[GeneratedSection],
        reports: Sequence[DeltaReport],
        skeleton: DocumentSkeleton,
    ) -> Tuple[List[GeneratedSection], StitchReport]:
        flagged = [r for r in reports if r.is_flagged]
        if not flagged or not sections:
            logger.info("No sections flagged, stitch pass skipped")
            return list(sections), StitchReport(skipped_reason="no flagged sections")

        logger.info("Stitch pass: %d sections flagged for repair", len(flagged))
        try:
            out = await self._review(skeleton, reports)
            if out is None:
                return list(sections), StitchReport(skipped_reason="unparseable stitch response")
            repairs = [
                StitchRepair(
                    section_name=r.sectionName,
                    problematic_text=r.problematicText,
                    repaired_text=r.repairedText,
                    reason=r.reason,
                )
                for r in out.repairs
            ]
            repaired, applied = apply_repairs(sections, repairs)
        except Exception as exc:
            logger.error("Stitch pass failed (non-fatal): %s", exc)
            return list(sections), StitchReport(skipped_reason=f"stitch failed: {exc}")

        drift = [
            TerminologyDrift(
                term=d.term,
                correct_definition=d.correctDefinition,
                drifted_usage=d.driftedUsage,
                affected_sections=d.affectedSections,
            )
            for d in out.terminologyDrift
        ]
        for item in drift:
            logger.info("Term %r drifted in sections: %s", item.term, ", ".join(item.affected_sections))
        redundancies = [
            Redundancy(claim=r.claim, appears_in=r.appearsIn, recommendation=r.recommendation)
            for r in out.redundancies
        ]
        if redundancies:
            logger.info("%d redundancies detected", len(redundancies))
        logger.info("%d/%d repairs applied", applied, len(repairs))
        return repaired, StitchReport(
            repairs_requested=len(repairs),
            repairs_applied=applied,
            repairs_skipped=len(repairs) - applied,
            terminology_drift=drift,
            redundancies=redundancies,
        )

    async def _review(self, skeleton: DocumentSkeleton, reports: Sequence[DeltaReport]) -> Optional[_StitchOut]:
        agent = self.settings.agent("stitch")
        result = await self.backend.generate(
            stitch_prompt(skeleton, reports),
            max_tokens=agent.max_tokens,
            temperature=agent.temperature,
            json_schema=_StitchOut.model_json_schema(),
        )
        out = parse_structured(result.text, _StitchOut)
        if out is None:
            logger.warning("Stitch response was not valid JSON, pass skipped")
        return out
