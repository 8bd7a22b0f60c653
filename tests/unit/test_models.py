from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from result_ingest.models import (
    BatchOutcome,
    ColumnLayout,
    ErrorRecord,
    JobPhase,
    JobState,
    RunResult,
    StudentKey,
    StudentRecord,
    SubjectRecord,
    SubjectStatus,
    merge_subjects,
)
from result_ingest.models.error_record import INVALID_SUBJECT, PERSISTENCE_ERROR


def _subject(code: str, grade: str = "A") -> SubjectRecord:
    return SubjectRecord(
        subject_code=code,
        subject_name=f"Subject {code}",
        internal_marks=20,
        grade=grade,
        credits=3.0,
        status=SubjectStatus.FAIL if grade == "F" else SubjectStatus.PASS,
    )


class TestColumnLayout:
    def test_offset_and_first_data_row(self):
        layout = ColumnLayout(header_row_index=4, has_leading_serial=True)
        assert layout.offset == 1
        assert layout.first_data_row == 5
        assert ColumnLayout(0, False).offset == 0

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            ColumnLayout(header_row_index=-1, has_leading_serial=False)


class TestSubjectRecord:
    def test_dict_round_trip_keeps_status_value(self):
        s = _subject("R101", "F")
        data = s.to_dict()
        assert data["status"] == "Fail"
        assert SubjectRecord.from_dict(data) == s


class TestStudentRecord:
    def test_duplicate_codes_rejected(self):
        with pytest.raises(ValueError):
            StudentRecord(StudentKey("HN001", "1-2"), (_subject("R101"), _subject("R101")))

    def test_merge_is_union_on_code(self):
        stored = StudentRecord(StudentKey("HN001", "1-2"), (_subject("R101"),))
        merged, added = stored.merged_with([_subject("R101", "F"), _subject("R102")])
        assert merged.subject_codes == ["R101", "R102"]
        assert added == 1
        # 既存の履歴は上書きしない
        assert merged.subjects[0].grade == "A"

    def test_merge_twice_equals_merge_once(self):
        stored = StudentRecord(StudentKey("HN001", "1-2"), (_subject("R101"),))
        incoming = [_subject("R101"), _subject("R102")]
        once, _ = stored.merged_with(incoming)
        twice, added = once.merged_with(incoming)
        assert twice == once
        assert added == 0

    def test_merge_subjects_reports_appended(self):
        merged, added = merge_subjects([_subject("R101")], [_subject("R102"), _subject("R102")])
        assert [s.subject_code for s in merged] == ["R101", "R102"]
        assert [s.subject_code for s in added] == ["R102"]

    def test_to_dict(self):
        record = StudentRecord(StudentKey("HN001", "1-2"), (_subject("R101"),))
        data = record.to_dict()
        assert data["roll"] == "HN001"
        assert data["semester"] == "1-2"
        assert data["subjects"][0]["subject_code"] == "R101"


class TestBatchOutcome:
    def test_partial_and_elapsed(self):
        start = datetime(2024, 1, 1, tzinfo=UTC)
        failure = ErrorRecord.create("a.csv", "1-2", -1, PERSISTENCE_ERROR, "boom", identifier="HN002")
        skip = ErrorRecord.create("a.csv", "1-2", 5, INVALID_SUBJECT, "bad code", identifier="HN001")
        outcome = BatchOutcome(
            document="a.csv",
            semester="1-2",
            processed_count=3,
            skipped_count=1,
            saved_count=1,
            success=True,
            errors=(skip, failure),
            start_time=start,
            end_time=start + timedelta(seconds=2),
        )
        assert outcome.is_partial
        assert outcome.persistence_failures == [failure]
        assert outcome.elapsed_seconds == 2.0

    def test_to_dict_shape(self):
        outcome = BatchOutcome("a.csv", "1-2", 1, 0, 1, True)
        data = outcome.to_dict()
        assert data["processedCount"] == 1
        assert data["savedCount"] == 1
        assert data["errors"] == []
        assert outcome.elapsed_seconds == 0.0
        assert not outcome.is_partial


def test_run_result_total_documents():
    now = datetime.now(UTC)
    result = RunResult(2, 1, 3, 0, 0, 0, now, now, 0.0)
    assert result.total_documents == 6


class TestJobState:
    def test_advance_stamps_and_keeps_id(self):
        state = JobState(job_id="abc")
        assert state.phase is JobPhase.PENDING
        assert not state.completed
        nxt = state.advance(JobPhase.DONE, error=None)
        assert nxt.job_id == "abc"
        assert nxt.completed
        assert nxt.updated_at is not None
        assert state.phase is JobPhase.PENDING

    @pytest.mark.parametrize("phase", list(JobPhase))
    def test_terminal_phases(self, phase):
        assert phase.is_terminal is (phase in (JobPhase.DONE, JobPhase.FAILED))
