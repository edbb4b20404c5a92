"""Document skeleton: the global constraint set extracted from a source."""

from __future__ import annotations

from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict


class CommitmentLedger(BaseModel):
    model_config = ConfigDict(frozen=True)

    asserts: Tuple[str, ...] = ()
    rejects: Tuple[str, ...] = ()
    assumes: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.asserts or self.rejects or self.assumes)


class DocumentSkeleton(BaseModel):
    """Thesis, argument arc, glossary and commitments for one job.

    An empty skeleton (extraction failed) means "no constraint available",
    never "contradicting nothing is allowed".
    """

    model_config = ConfigDict(frozen=True)

    thesis: str = ""
    outline: Tuple[str, ...] = ()
    key_terms: Dict[str, str] = {}
    commitments: CommitmentLedger = CommitmentLedger()
    entities: Tuple[str, ...] = ()
    raw: str = ""

    @property
    def is_empty(self) -> bool:
        return not (
            self.thesis
            or self.outline
            or self.key_terms
            or self.entities
            or not self.commitments.is_empty
        )
