"""Final assembly: join finalized sections in structure order."""

from __future__ import annotations

import logging
import time
from typing import Optional, Sequence

from expander.models import ExpansionResult, GeneratedSection, StitchReport
from expander.utils.text import count_words

logger = logging.getLogger(__name__)


def assemble(
    sections: Sequence[GeneratedSection],
    input_word_count: int,
    started_at: float,
    *,
    stitch: Optional[StitchReport] = None,
    stopped_early: bool = False,
) -> ExpansionResult:
    """Build the result from *sections*; *started_at* is a ``time.perf_counter()`` reading."""
    expanded_text = "\n\n".join(section.serialized() for section in sections)
    output_word_count = count_words(expanded_text)
    elapsed_ms = int((time.perf_counter() - started_at) * 1000)
    logger.info(
        "Assembled %d sections: %d -> %d words in %dms",
        len(sections), input_word_count, output_word_count, elapsed_ms,
    )
    return ExpansionResult(
        expanded_text=expanded_text,
        input_word_count=input_word_count,
        output_word_count=output_word_count,
        sections_generated=len(sections),
        processing_time_ms=elapsed_ms,
        stitch=stitch,
        stopped_early=stopped_early,
    )
