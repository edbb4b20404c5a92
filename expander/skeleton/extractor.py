"""Skeleton extraction: one structured call that pins down thesis, terms and commitments."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from expander.llm.base_client import GenerationBackend
from expander.llm.structured import parse_structured, string_items
from expander.models import CommitmentLedger, DocumentSkeleton, SettingsConfig
from expander.utils.text import count_words, truncate_words
from expander.writing.prompts.skeleton import skeleton_extraction_prompt

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n[...truncated for skeleton extraction...]"


class _KeyTermOut(BaseModel):
    term: str
    definition: str = ""

    @field_validator("definition", mode="before")
    @classmethod
    def _lenient_definition(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


class _LedgerOut(BaseModel):
    asserts: List[str] = Field(default_factory=list)
    rejects: List[str] = Field(default_factory=list)
    assumes: List[str] = Field(default_factory=list)

    @field_validator("asserts", "rejects", "assumes", mode="before")
    @classmethod
    def _lenient_list(cls, v: Any) -> List[str]:
        return string_items(v)


class _SkeletonOut(BaseModel):
    """Wire shape requested from the provider.

    Every field is recovered on its own: a null thesis, a key term without a
    ``term`` or a non-string list entry is dropped without discarding the rest.
    """

    model_config = ConfigDict(populate_by_name=True)

    thesis: str = ""
    outline: List[str] = Field(default_factory=list)
    key_terms: List[_KeyTermOut] = Field(default_factory=list, alias="keyTerms")
    commitment_ledger: _LedgerOut = Field(default_factory=_LedgerOut, alias="commitmentLedger")
    entities: List[str] = Field(default_factory=list)

    @field_validator("thesis", mode="before")
    @classmethod
    def _lenient_thesis(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @field_validator("outline", "entities", mode="before")
    @classmethod
    def _lenient_list(cls, v: Any) -> List[str]:
        return string_items(v)

    @field_validator("key_terms", mode="before")
    @classmethod
    def _usable_terms(cls, v: Any) -> List[Dict[str, Any]]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict) and isinstance(item.get("term"), str)]

    @field_validator("commitment_ledger", mode="before")
    @classmethod
    def _lenient_ledger(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, _LedgerOut)) else {}


def _to_skeleton(out: _SkeletonOut, raw: str) -> DocumentSkeleton:
    key_terms: Dict[str, str] = {}
    for item in out.key_terms:
        term = item.term.strip()
        if term and term not in key_terms:
            key_terms[term] = item.definition.strip()
    ledger = out.commitment_ledger
    return DocumentSkeleton(
        thesis=out.thesis.strip(),
        outline=tuple(c.strip() for c in out.outline if c.strip()),
        key_terms=key_terms,
        commitments=CommitmentLedger(
            asserts=tuple(a for a in ledger.asserts if a.strip()),
            rejects=tuple(r for r in ledger.rejects if r.strip()),
            assumes=tuple(a for a in ledger.assumes if a.strip()),
        ),
        entities=tuple(e.strip() for e in out.entities if e.strip()),
        raw=raw,
    )


class SkeletonExtractor:
    def __init__(self, backend: GenerationBackend, settings: SettingsConfig):
        self.backend = backend
        self.settings = settings

    async def extract(self, source_text: str, instructions: str) -> DocumentSkeleton:
        """Extract the document skeleton; an empty skeleton (with raw kept) on parse failure."""
        max_words = self.settings.expansion.skeleton_max_words
        word_count = count_words(source_text)
        excerpt = source_text
        if word_count > max_words:
            excerpt = truncate_words(source_text, max_words) + TRUNCATION_MARKER
            logger.info("Skeleton input truncated from %d to %d words", word_count, max_words)

        agent = self.settings.agent("skeleton")
        result = await self.backend.generate(
            skeleton_extraction_prompt(excerpt, word_count, instructions),
            max_tokens=agent.max_tokens,
            temperature=agent.temperature,
            json_schema=_SkeletonOut.model_json_schema(by_alias=True),
        )
        parsed = parse_structured(result.text, _SkeletonOut)
        if parsed is None:
            logger.warning("Skeleton extraction returned unparseable output; continuing without constraints")
            return DocumentSkeleton(raw=result.text)

        skeleton = _to_skeleton(parsed, result.text)
        logger.info(
            "Skeleton extracted: %d outline claims, %d key terms, %d asserts, %d rejects",
            len(skeleton.outline),
            len(skeleton.key_terms),
            len(skeleton.commitments.asserts),
            len(skeleton.commitments.rejects),
        )
        return skeleton
