"""Progress events emitted while a job runs.

Skeleton-stage events report percent on a 0-45 scale, generation events on a
0-100 scale. Every event carries ``stage`` so consumers can tell them apart.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from expander.models.enums import PipelineStage


class ProgressUpdate(BaseModel):
    kind: Literal["progress"] = "progress"
    stage: PipelineStage
    message: str
    percent: Optional[int] = None


class OutlineReady(BaseModel):
    kind: Literal["outline"] = "outline"
    stage: PipelineStage = PipelineStage.OUTLINE
    outline: str
    total_sections: int


class SectionComplete(BaseModel):
    kind: Literal["section_complete"] = "section_complete"
    stage: PipelineStage = PipelineStage.GENERATION
    section_name: str
    section_text: str
    index: int
    total: int
    word_count: int
    cumulative_word_count: int
    percent: int


class ExpansionComplete(BaseModel):
    kind: Literal["complete"] = "complete"
    stage: PipelineStage = PipelineStage.ASSEMBLY
    total_sections: int
    total_word_count: int
    percent: int = 100


class ExpansionFailed(BaseModel):
    kind: Literal["error"] = "error"
    stage: PipelineStage
    message: str


ExpansionEvent = Annotated[
    Union[ProgressUpdate, OutlineReady, SectionComplete, ExpansionComplete, ExpansionFailed],
    Field(discriminator="kind"),
]
