"""JSONL audit trail for expansion jobs.

Every provider call, stage transition, finalized section and job outcome is
written as one JSON object per line to ``{log_dir}/expansions.jsonl``. The
console logger stays human-oriented; this file is what gets grepped and
replayed when a job's cost or behaviour needs explaining.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import IO, Any

import structlog
from structlog.processors import JSONRenderer
from structlog.typing import Processor

AUDIT_FILENAME = "expansions.jsonl"

_logger: structlog.BoundLogger | None = None
_handle: IO[str] | None = None

# Raw responses longer than this are stored as a preview only.
_RAW_RESPONSE_LIMIT = 500
_RAW_PREVIEW_CHARS = 200


def configure_run_logging(log_dir: str) -> Path:
    """Route the audit trail to *log_dir*. Repeated calls keep the first destination."""
    global _logger, _handle
    path = Path(log_dir) / AUDIT_FILENAME
    if _logger is not None:
        return path
    path.parent.mkdir(parents=True, exist_ok=True)
    _handle = open(path, "a", encoding="utf-8")
    handle = _handle

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        JSONRenderer(sort_keys=True),
    ]
    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=lambda *args: structlog.PrintLogger(handle),
        cache_logger_on_first_use=False,
    )
    _logger = structlog.get_logger()
    return path


def close_run_logging() -> None:
    global _logger, _handle
    if _handle is not None:
        _handle.close()
    _logger = None
    _handle = None


def bind_job(job_id: str, provider: str) -> None:
    """Every audit line written until ``unbind_job`` carries job_id and provider."""
    structlog.contextvars.bind_contextvars(job_id=job_id, provider=provider)


def unbind_job() -> None:
    structlog.contextvars.unbind_contextvars("job_id", "provider", "stage")


def bind_stage(stage: str) -> None:
    structlog.contextvars.bind_contextvars(stage=stage)


def _emit(event: str, **fields: Any) -> None:
    if _logger is None:
        return
    _logger.info(event, **{key: value for key, value in fields.items() if value is not None})


def log_llm_call(
    source: str,
    status: str,
    *,
    model: str | None = None,
    latency_ms: int | None = None,
    tokens_in: int | None = None,
    tokens_out: int | None = None,
    cost_usd: float | None = None,
    stop_reason: str | None = None,
    error: str | None = None,
    raw_response: str | None = None,
) -> None:
    """One provider call. The active stage comes from bound context."""
    raw = preview = None
    if raw_response is not None:
        if len(raw_response) < _RAW_RESPONSE_LIMIT:
            raw = raw_response
        else:
            preview = raw_response[:_RAW_PREVIEW_CHARS] + "..."
    _emit(
        "llm_call",
        source=source,
        status=status,
        model=model,
        latency_ms=latency_ms,
        tokens_in=tokens_in,
        tokens_out=tokens_out,
        cost_usd=cost_usd,
        stop_reason=stop_reason,
        error=error,
        raw_response=raw,
        raw_response_preview=preview,
    )


def log_stage(stage: str, action: str, **summary: Any) -> None:
    """Stage transition (action: start|done|failed)."""
    _emit("stage", stage=stage, action=action, **summary)


def log_section(
    section_name: str,
    *,
    target_words: int,
    word_count: int,
    attempts: int,
    converged: bool,
    status: str | None = None,
) -> None:
    _emit(
        "section",
        section=section_name,
        target_words=target_words,
        word_count=word_count,
        attempts=attempts,
        converged=converged,
        commitment_status=status,
    )


def log_job_result(
    *,
    input_words: int,
    output_words: int,
    sections: int,
    stopped_early: bool,
    repairs_applied: int,
    elapsed_ms: int,
) -> None:
    _emit(
        "job_result",
        input_words=input_words,
        output_words=output_words,
        sections=sections,
        stopped_early=stopped_early,
        repairs_applied=repairs_applied,
        elapsed_ms=elapsed_ms,
    )


def read_audit_trail(path: str | Path, event: str | None = None) -> list[dict[str, Any]]:
    """Parse an audit file, optionally keeping only entries named *event*.

    Unparseable lines (a crash mid-write) are skipped.
    """
    entries: list[dict[str, Any]] = []
    with open(path, encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if event is None or entry.get("event") == event:
                entries.append(entry)
    return entries
