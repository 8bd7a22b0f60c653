from __future__ import annotations

from result_ingest.models.student_record import StudentKey
from result_ingest.models.subject_record import SubjectRecord, SubjectStatus
from result_ingest.services.aggregator import StudentAggregator


def _subject(code: str, grade: str = "A") -> SubjectRecord:
    return SubjectRecord(
        subject_code=code,
        subject_name=f"Subject {code}",
        internal_marks=20,
        grade=grade,
        credits=3.0,
        status=SubjectStatus.PASS,
    )


def test_first_occurrence_wins():
    agg = StudentAggregator()
    key = StudentKey("21HN1A0501", "1-2")
    assert agg.add(key, _subject("R101", "A")) is True
    assert agg.add(key, _subject("R101", "F")) is False
    (record,) = list(agg.records())
    assert record.subjects[0].grade == "A"
    assert agg.subject_count == 1


def test_same_code_for_different_students_is_kept():
    agg = StudentAggregator()
    assert agg.add(StudentKey("HN001", "1-2"), _subject("R101"))
    assert agg.add(StudentKey("HN002", "1-2"), _subject("R101"))
    assert len(agg) == 2
    assert agg.subject_count == 2


def test_same_roll_different_semesters_are_separate_keys():
    agg = StudentAggregator()
    agg.add(StudentKey("HN001", "1-1"), _subject("R101"))
    agg.add(StudentKey("HN001", "1-2"), _subject("R101"))
    assert len(agg) == 2


def test_records_keep_first_seen_order():
    agg = StudentAggregator()
    b = StudentKey("HN002", "1-2")
    a = StudentKey("HN001", "1-2")
    agg.add(b, _subject("R102"))
    agg.add(a, _subject("R101"))
    agg.add(b, _subject("R101"))
    records = list(agg.records())
    assert [r.key for r in records] == [b, a]
    assert records[0].subject_codes == ["R102", "R101"]


def test_empty_aggregator():
    agg = StudentAggregator()
    assert len(agg) == 0
    assert agg.subject_count == 0
    assert list(agg.records()) == []
