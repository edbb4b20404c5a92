"""Enum definitions for typed stage boundaries."""

from enum import Enum


class CommitmentStatus(str, Enum):
    COMPLIANT = "COMPLIANT"
    VIOLATION = "VIOLATION"
    UNKNOWN = "UNKNOWN"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"


class StopReason(str, Enum):
    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"  # response was cut off by the output token limit
    OTHER = "other"


class PipelineStage(str, Enum):
    PARSE = "parse"
    SKELETON = "skeleton"
    OUTLINE = "outline"
    GENERATION = "generation"
    STITCH = "stitch"
    ASSEMBLY = "assembly"


class EventKind(str, Enum):
    PROGRESS = "progress"
    OUTLINE = "outline"
    SECTION_COMPLETE = "section_complete"
    COMPLETE = "complete"
    ERROR = "error"


class JobStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"  # max-words ceiling reached
    FAILED = "failed"
