"""Best-effort persistence of finalized sections and job status."""

from expander.db.repositories import (
    JobStatusStore,
    SectionStore,
    SQLiteJobStatusStore,
    SQLiteSectionStore,
)

__all__ = ["JobStatusStore", "SQLiteJobStatusStore", "SQLiteSectionStore", "SectionStore"]
