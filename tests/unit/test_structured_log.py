"""
Unit tests for the JSONL audit trail.
"""

import pytest

from expander.utils import structured_log


@pytest.fixture
def audit_path(tmp_path, monkeypatch):
    monkeypatch.setattr(structured_log, "_logger", None)
    monkeypatch.setattr(structured_log, "_handle", None)
    path = structured_log.configure_run_logging(str(tmp_path / "logs"))
    yield path
    structured_log.close_run_logging()


def test_entries_carry_bound_job_context(audit_path):
    structured_log.bind_job("ue-abc", "stub")
    structured_log.bind_stage("generation")
    structured_log.log_llm_call("stub", "success", model="stub-model", tokens_in=10, tokens_out=20)
    structured_log.unbind_job()
    structured_log.log_stage("stitch", "done")

    calls = structured_log.read_audit_trail(audit_path, "llm_call")
    assert len(calls) == 1
    assert calls[0]["job_id"] == "ue-abc"
    assert calls[0]["stage"] == "generation"
    assert calls[0]["tokens_out"] == 20
    assert "error" not in calls[0]

    stages = structured_log.read_audit_trail(audit_path, "stage")
    assert "job_id" not in stages[0]


def test_long_raw_responses_are_previewed(audit_path):
    structured_log.log_llm_call("stub", "error", raw_response="x" * 600)
    entry = structured_log.read_audit_trail(audit_path, "llm_call")[0]
    assert "raw_response" not in entry
    assert entry["raw_response_preview"] == "x" * 200 + "..."


def test_section_and_job_results(audit_path):
    structured_log.log_section("INTRODUCTION", target_words=500, word_count=480, attempts=2, converged=True)
    structured_log.log_job_result(
        input_words=200, output_words=5095, sections=8, stopped_early=False, repairs_applied=0, elapsed_ms=12
    )
    section = structured_log.read_audit_trail(audit_path, "section")[0]
    assert section["section"] == "INTRODUCTION"
    assert "commitment_status" not in section
    assert structured_log.read_audit_trail(audit_path, "job_result")[0]["output_words"] == 5095


def test_unparseable_lines_are_skipped(tmp_path):
    path = tmp_path / "expansions.jsonl"
    path.write_text('{"event": "stage"}\nnot json\n\n{"event": "section"}\n', encoding="utf-8")
    assert [e["event"] for e in structured_log.read_audit_trail(path)] == ["stage", "section"]


def test_logging_is_a_no_op_when_unconfigured(monkeypatch):
    monkeypatch.setattr(structured_log, "_logger", None)
    structured_log.log_stage("parse", "start")
