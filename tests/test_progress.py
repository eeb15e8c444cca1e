"""
Progress store tests for CourseDeck.

Tests the SQLite, JSON and in-memory stores and the enrollment registry.
"""

import json

import pytest

from coursedeck.classroom import (
    EnrollmentRegistry,
    JsonProgressStore,
    MemoryProgressStore,
    SQLiteProgressStore,
)
from coursedeck.schemas import ProgressRecord


def sample_record(course_id: str = "course-1", index: int = 12) -> ProgressRecord:
    return ProgressRecord(
        course_id=course_id,
        current_global_index=index,
        completed_slides=set(range(index + 1)),
        completed_modules={0},
        quiz_scores={1: 67},
    )


class TestSQLiteProgressStore:
    """Test the SQLite store."""

    @pytest.fixture
    def sqlite_store(self, tmp_path):
        return SQLiteProgressStore(tmp_path / "progress.db", student_id="alice")

    def test_load_missing(self, sqlite_store):
        assert sqlite_store.load("course-1") is None

    def test_save_and_load(self, sqlite_store):
        sqlite_store.save("course-1", sample_record())
        record = sqlite_store.load("course-1")
        assert record.current_global_index == 12
        assert record.completed_slides == set(range(13))
        assert record.completed_modules == {0, 1}
        assert record.quiz_scores == {1: 67}
        assert record.updated_at is not None

    def test_last_write_wins(self, sqlite_store):
        sqlite_store.save("course-1", sample_record(index=3))
        sqlite_store.save("course-1", sample_record(index=9))
        assert sqlite_store.load("course-1").current_global_index == 9

    def test_students_are_separate(self, tmp_path, sqlite_store):
        sqlite_store.save("course-1", sample_record())
        other = SQLiteProgressStore(tmp_path / "progress.db", student_id="bob")
        assert other.load("course-1") is None

    def test_reset_progress(self, sqlite_store):
        sqlite_store.save("course-1", sample_record())
        sqlite_store.save("course-2", sample_record("course-2"))
        sqlite_store.reset_progress("course-1")
        assert sqlite_store.load("course-1") is None
        assert sqlite_store.get_course_ids() == ["course-2"]

    def test_creates_parent_directory(self, tmp_path):
        store = SQLiteProgressStore(tmp_path / "nested" / "dir" / "progress.db")
        assert store.db_path.exists()


class TestJsonProgressStore:
    """Test the JSON file store."""

    def test_save_and_load(self, tmp_path):
        store = JsonProgressStore(tmp_path / "progress.json")
        assert store.load("course-1") is None
        store.save("course-1", sample_record())
        store.save("course-2", sample_record("course-2", index=1))
        assert store.load("course-1").quiz_scores == {1: 67}
        assert store.load("course-2").current_global_index == 1

    def test_reads_legacy_score_keys(self, tmp_path):
        path = tmp_path / "progress.json"
        path.write_text(json.dumps({
            "course-1": {
                "course_id": "course-1",
                "current_global_index": 4,
                "completed_slides": [0, 1, 2, 3, 4],
                "completed_modules": [],
                "quiz_scores": {"mod_0": 80},
            }
        }), encoding="utf-8")
        record = JsonProgressStore(path).load("course-1")
        assert record.quiz_scores == {0: 80}
        assert 0 in record.completed_modules


class TestMemoryProgressStore:
    """Test the in-memory store."""

    def test_records_are_copied(self):
        store = MemoryProgressStore()
        record = sample_record()
        store.save("course-1", record)
        record.completed_slides.add(99)
        loaded = store.load("course-1")
        loaded.completed_slides.add(100)
        assert 99 not in store.load("course-1").completed_slides
        assert 100 not in store.load("course-1").completed_slides
        assert store.save_count == 1


class TestProgressRecord:
    """Test record invariants."""

    def test_scored_modules_are_completed(self):
        record = ProgressRecord(course_id="c", quiz_scores={2: 10})
        assert record.completed_modules == {2}

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            ProgressRecord(course_id="c", current_global_index=-1)

    def test_same_position_ignores_timestamp(self):
        a = sample_record()
        b = sample_record().model_copy(update={"updated_at": None})
        assert a.same_position(b)
        assert not a.same_position(sample_record(index=2))


class TestEnrollmentRegistry:
    """Test enrollments."""

    def test_enroll(self, tmp_path):
        registry = EnrollmentRegistry(tmp_path / "progress.db", student_id="alice")
        assert not registry.is_enrolled("course-1")
        registry.enroll("course-1")
        registry.enroll("course-1")
        registry.enroll("course-2")
        assert registry.is_enrolled("course-1")
        assert registry.get_enrolled_course_ids() == ["course-1", "course-2"]

    def test_unenroll(self, tmp_path):
        registry = EnrollmentRegistry(tmp_path / "progress.db")
        registry.enroll("course-1")
        registry.unenroll("course-1")
        assert not registry.is_enrolled("course-1")

    def test_shares_database_with_progress(self, tmp_path):
        db_path = tmp_path / "progress.db"
        store = SQLiteProgressStore(db_path)
        registry = EnrollmentRegistry(db_path)
        registry.enroll("course-1")
        store.save("course-1", sample_record())
        assert store.load("course-1") is not None
        assert registry.is_enrolled("course-1")
