"""Job request and result models."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from expander.models.sections import StitchReport


class ExpansionRequest(BaseModel):
    text: str
    instructions: str = ""
    target_word_count: Optional[int] = Field(default=None, ge=0)
    provider: Optional[str] = None
    max_words: Optional[int] = Field(default=None, ge=1)
    job_id: str = Field(default_factory=lambda: f"ue-{uuid.uuid4().hex[:12]}")


class ExpansionResult(BaseModel):
    expanded_text: str
    input_word_count: int
    output_word_count: int
    sections_generated: int
    processing_time_ms: int
    stitch: Optional[StitchReport] = None
    stopped_early: bool = False
