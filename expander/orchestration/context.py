"""Per-job accumulated state carried across section iterations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from expander.models import DeltaReport, GeneratedSection, SectionResult
from expander.writing.text_tools import summarize_section


@dataclass
class JobAccumulator:
    """Finalized sections plus the context later sections are written against.

    Lives for exactly one job. ``points_covered`` only grows, and the prior
    summary only ever contains sections that are already finalized.
    """

    summary_max_words: int = 400
    sections: List[GeneratedSection] = field(default_factory=list)
    points_covered: List[str] = field(default_factory=list)
    prior_sections_summary: str = ""
    delta_reports: List[DeltaReport] = field(default_factory=list)
    cumulative_word_count: int = 0

    def record(self, section: GeneratedSection, result: SectionResult, report: DeltaReport) -> None:
        self.sections.append(section)
        self.delta_reports.append(report)
        self.points_covered.extend(result.key_claims)
        self.cumulative_word_count += section.word_count
        condensed = summarize_section(section.content, self.summary_max_words)
        claims = ""
        if result.key_claims:
            claims = "\nKEY CLAIMS:\n" + "\n".join(f"  - {claim}" for claim in result.key_claims)
        self.prior_sections_summary += (
            f"\n\n=== {section.name} (ESTABLISHED - DO NOT RESTATE) ===\n{condensed}{claims}"
        )

    @property
    def flagged_count(self) -> int:
        return sum(1 for report in self.delta_reports if report.is_flagged)
