"""Model exports for stage boundaries."""

from expander.models.config import (
    AgentConfig,
    ExpansionConfig,
    PersistenceConfig,
    ProviderConfig,
    SettingsConfig,
)
from expander.models.enums import CommitmentStatus, EventKind, JobStatus, PipelineStage, StopReason
from expander.models.events import (
    ExpansionComplete,
    ExpansionEvent,
    ExpansionFailed,
    OutlineReady,
    ProgressUpdate,
    SectionComplete,
)
from expander.models.instructions import CitationRequest, ParsedInstructions, SectionSpec
from expander.models.results import ExpansionRequest, ExpansionResult
from expander.models.sections import (
    DeltaReport,
    GeneratedSection,
    Redundancy,
    SectionRecord,
    SectionResult,
    StitchRepair,
    StitchReport,
    TerminologyDrift,
)
from expander.models.skeleton import CommitmentLedger, DocumentSkeleton

__all__ = [
    "AgentConfig",
    "CitationRequest",
    "CommitmentLedger",
    "CommitmentStatus",
    "DeltaReport",
    "DocumentSkeleton",
    "EventKind",
    "ExpansionComplete",
    "ExpansionConfig",
    "ExpansionEvent",
    "ExpansionFailed",
    "ExpansionRequest",
    "ExpansionResult",
    "GeneratedSection",
    "JobStatus",
    "OutlineReady",
    "ParsedInstructions",
    "PersistenceConfig",
    "PipelineStage",
    "ProgressUpdate",
    "ProviderConfig",
    "Redundancy",
    "SectionComplete",
    "SectionRecord",
    "SectionResult",
    "SectionSpec",
    "SettingsConfig",
    "StitchRepair",
    "StitchReport",
    "StopReason",
    "TerminologyDrift",
]
