"""Structured view of free-form expansion instructions."""

from __future__ import annotations

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class SectionSpec(BaseModel):
    """A named section and its word allocation. 0 means "not specified"."""

    model_config = ConfigDict(frozen=True)

    name: str
    word_count: int = Field(ge=0, default=0)


class CitationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str = "academic"
    count: int = Field(ge=0)
    timeframe: Optional[str] = None


class ParsedInstructions(BaseModel):
    """Result of parsing an instruction string. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    target_word_count: Optional[int] = None
    sections: Tuple[SectionSpec, ...] = ()
    constraints: Tuple[str, ...] = ()
    citations: Optional[CitationRequest] = None
    academic_register: bool = False
    no_bullet_points: bool = False
    internal_subsections: bool = False
    literature_review: bool = False
    authorities: Tuple[str, ...] = ()
    dialogue_mode: bool = False
    dialogue_participants: Tuple[str, ...] = ()
    strongest_points: Optional[int] = None

    @property
    def has_structure(self) -> bool:
        return bool(self.sections)
