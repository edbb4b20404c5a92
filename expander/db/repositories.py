"""Section and job-status stores.

The pipeline depends only on the ``SectionStore`` / ``JobStatusStore``
protocols; the SQLite classes are the shipped implementations. Each call opens
its own connection so a store can be shared across jobs.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from expander.db.database import get_db
from expander.models import DeltaReport, JobStatus, SectionRecord


@runtime_checkable
class SectionStore(Protocol):
    async def save_section(self, record: SectionRecord) -> None:
        ...


@runtime_checkable
class JobStatusStore(Protocol):
    async def set_status(self, job_id: str, status: JobStatus) -> None:
        ...

    async def get_status(self, job_id: str) -> Optional[JobStatus]:
        ...


class SQLiteSectionStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    async def save_section(self, record: SectionRecord) -> None:
        async with get_db(self.db_path) as db:
            await db.execute(
                """
                INSERT OR REPLACE INTO expansion_sections
                    (record_id, job_id, section_index, section_name, content, word_count,
                     target_words, commitment_status, passed, delta_report)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.record_id,
                    record.job_id,
                    record.section_index,
                    record.section_name,
                    record.content,
                    record.word_count,
                    record.target_words,
                    record.delta.status.value,
                    int(record.passed),
                    record.delta.model_dump_json(),
                ),
            )
            await db.commit()

    async def load_sections(self, job_id: str) -> List[SectionRecord]:
        async with get_db(self.db_path) as db:
            cursor = await db.execute(
                """
                SELECT record_id, job_id, section_index, section_name, content, word_count,
                       target_words, delta_report
                FROM expansion_sections WHERE job_id = ? ORDER BY section_index
                """,
                (job_id,),
            )
            rows = await cursor.fetchall()
        return [
            SectionRecord(
                record_id=str(row["record_id"]),
                job_id=str(row["job_id"]),
                section_index=int(row["section_index"]),
                section_name=str(row["section_name"]),
                content=str(row["content"]),
                word_count=int(row["word_count"]),
                target_words=int(row["target_words"]),
                delta=DeltaReport.model_validate_json(str(row["delta_report"])),
            )
            for row in rows
        ]


class SQLiteJobStatusStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    async def set_status(self, job_id: str, status: JobStatus) -> None:
        async with get_db(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO job_status (job_id, status) VALUES (?, ?)
                ON CONFLICT(job_id) DO UPDATE SET status = excluded.status, updated_at = CURRENT_TIMESTAMP
                """,
                (job_id, status.value),
            )
            await db.commit()

    async def get_status(self, job_id: str) -> Optional[JobStatus]:
        async with get_db(self.db_path) as db:
            cursor = await db.execute("SELECT status FROM job_status WHERE job_id = ?", (job_id,))
            row = await cursor.fetchone()
        if row is None:
            return None
        return JobStatus(str(row[0]))
