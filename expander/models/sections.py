"""Per-section generation, audit and repair models."""

from __future__ import annotations

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from expander.models.enums import CommitmentStatus


class SectionResult(BaseModel):
    content: str
    key_claims: List[str] = Field(default_factory=list, max_length=8)
    attempts: int = 0
    converged: bool = False


class GeneratedSection(BaseModel):
    """A finalized section as it is carried through audit, repair and assembly."""

    name: str
    content: str
    target_words: int = 0
    word_count: int = 0

    def serialized(self) -> str:
        return f"{self.name}\n\n{self.content}"


class DeltaReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    section_name: str
    new_claims: Tuple[str, ...] = ()
    terms_used: Tuple[str, ...] = ()
    conflicts_detected: Tuple[str, ...] = ()
    status: CommitmentStatus = CommitmentStatus.UNKNOWN

    @property
    def is_flagged(self) -> bool:
        return bool(self.conflicts_detected) or self.status == CommitmentStatus.VIOLATION


class StitchRepair(BaseModel):
    section_name: str
    problematic_text: str
    repaired_text: str
    reason: str = ""


class TerminologyDrift(BaseModel):
    term: str
    correct_definition: str = ""
    drifted_usage: str = ""
    affected_sections: List[str] = Field(default_factory=list)


class Redundancy(BaseModel):
    claim: str
    appears_in: List[str] = Field(default_factory=list)
    recommendation: str = ""


class StitchReport(BaseModel):
    repairs_requested: int = 0
    repairs_applied: int = 0
    repairs_skipped: int = 0
    terminology_drift: List[TerminologyDrift] = Field(default_factory=list)
    redundancies: List[Redundancy] = Field(default_factory=list)
    skipped_reason: str = ""


class SectionRecord(BaseModel):
    """One finalized section as written to a section store."""

    record_id: str
    job_id: str
    section_index: int
    section_name: str
    content: str
    word_count: int
    target_words: int
    delta: DeltaReport

    @property
    def passed(self) -> bool:
        return self.delta.status != CommitmentStatus.VIOLATION
