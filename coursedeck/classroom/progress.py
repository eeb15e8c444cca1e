"""
Progress stores - Persist a learner's resume point per course.

Provides:
- ProgressStore: load/save port consumed by the NavigationController
- SQLiteProgressStore: default store in ~/.coursedeck/progress.db
- JsonProgressStore: single JSON file keyed by course
- MemoryProgressStore: process-local store
- EnrollmentRegistry: which courses a student may open
"""

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol

from coursedeck.schemas import ProgressRecord


DEFAULT_PROGRESS_DIR = Path.home() / ".coursedeck"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"


class ProgressStore(Protocol):
    """
    Persistence port for progress records.

    save() always receives the whole record; the last write wins.
    """

    def load(self, course_id: str) -> Optional[ProgressRecord]:
        ...

    def save(self, course_id: str, record: ProgressRecord) -> None:
        ...


# -----------------------------------------------------------------------------
# SQLite
# -----------------------------------------------------------------------------

class SQLiteProgressStore:
    """
    Store progress records in a SQLite database.

    Progress is kept apart from course content so that:
    - Content can be updated without losing progress
    - Progress is learner-specific, content is shared
    """

    def __init__(self, db_path: Optional[Path] = None, student_id: str = "default"):
        """
        Initialize progress store.

        Args:
            db_path: Path to progress.db (default: ~/.coursedeck/progress.db)
            student_id: Learner identifier for multi-user support
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.student_id = student_id
        self._ensure_database()

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS course_progress (
                    student_id TEXT NOT NULL,
                    course_id TEXT NOT NULL,
                    current_index INTEGER NOT NULL DEFAULT 0,
                    completed_slides JSON NOT NULL DEFAULT '[]',
                    completed_modules JSON NOT NULL DEFAULT '[]',
                    quiz_scores JSON NOT NULL DEFAULT '{}',
                    updated_at TEXT,
                    PRIMARY KEY (student_id, course_id)
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def load(self, course_id: str) -> Optional[ProgressRecord]:
        """Get the last saved record for a course, None on first entry."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT course_id, current_index, completed_slides, completed_modules,
                          quiz_scores, updated_at
                   FROM course_progress
                   WHERE student_id = ? AND course_id = ?""",
                (self.student_id, course_id)
            )
            row = cursor.fetchone()
            if not row:
                return None

            return ProgressRecord(
                course_id=row["course_id"],
                current_global_index=row["current_index"],
                completed_slides=set(json.loads(row["completed_slides"])),
                completed_modules=set(json.loads(row["completed_modules"])),
                quiz_scores=json.loads(row["quiz_scores"]),
                updated_at=datetime.fromisoformat(row["updated_at"]) if row["updated_at"] else None,
            )
        finally:
            conn.close()

    def save(self, course_id: str, record: ProgressRecord) -> None:
        """Replace the stored record for a course."""
        conn = self._get_connection()
        try:
            updated_at = (record.updated_at or datetime.now()).isoformat()
            conn.execute(
                """INSERT INTO course_progress
                     (student_id, course_id, current_index, completed_slides,
                      completed_modules, quiz_scores, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(student_id, course_id) DO UPDATE SET
                     current_index = excluded.current_index,
                     completed_slides = excluded.completed_slides,
                     completed_modules = excluded.completed_modules,
                     quiz_scores = excluded.quiz_scores,
                     updated_at = excluded.updated_at""",
                (
                    self.student_id,
                    course_id,
                    record.current_global_index,
                    json.dumps(sorted(record.completed_slides)),
                    json.dumps(sorted(record.completed_modules)),
                    json.dumps({str(k): v for k, v in sorted(record.quiz_scores.items())}),
                    updated_at,
                )
            )
            conn.commit()
        finally:
            conn.close()

    def get_course_ids(self) -> list[str]:
        """Get IDs of all courses with saved progress."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT course_id FROM course_progress
                   WHERE student_id = ? ORDER BY updated_at DESC""",
                (self.student_id,)
            )
            return [row["course_id"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def reset_progress(self, course_id: str):
        """Delete the record for one course."""
        conn = self._get_connection()
        try:
            conn.execute(
                "DELETE FROM course_progress WHERE student_id = ? AND course_id = ?",
                (self.student_id, course_id)
            )
            conn.commit()
        finally:
            conn.close()


# -----------------------------------------------------------------------------
# JSON file and in-memory stores
# -----------------------------------------------------------------------------

class JsonProgressStore:
    """Store all records of one learner in a single JSON file keyed by course."""

    def __init__(self, file_path: Path):
        self.file_path = Path(file_path)

    def _read_all(self) -> dict:
        if not self.file_path.exists():
            return {}
        with open(self.file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def load(self, course_id: str) -> Optional[ProgressRecord]:
        data = self._read_all().get(course_id)
        if data is None:
            return None
        return ProgressRecord.model_validate(data)

    def save(self, course_id: str, record: ProgressRecord) -> None:
        data = self._read_all()
        data[course_id] = record.model_dump(mode="json")
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.file_path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(self.file_path)


class MemoryProgressStore:
    """Keep records in a dict. Records are copied on the way in and out."""

    def __init__(self):
        self.records: dict[str, ProgressRecord] = {}
        self.save_count = 0

    def load(self, course_id: str) -> Optional[ProgressRecord]:
        record = self.records.get(course_id)
        return record.model_copy(deep=True) if record else None

    def save(self, course_id: str, record: ProgressRecord) -> None:
        self.records[course_id] = record.model_copy(deep=True)
        self.save_count += 1


# -----------------------------------------------------------------------------
# Enrollment
# -----------------------------------------------------------------------------

class EnrollmentRegistry:
    """Track course enrollments in the progress database."""

    def __init__(self, db_path: Optional[Path] = None, student_id: str = "default"):
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.student_id = student_id
        self._ensure_database()

    def _ensure_database(self):
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS enrollments (
                    student_id TEXT NOT NULL,
                    course_id TEXT NOT NULL,
                    enrolled_at TEXT NOT NULL,
                    PRIMARY KEY (student_id, course_id)
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def enroll(self, course_id: str):
        """Enroll in a course. Enrolling twice keeps the first date."""
        conn = self._get_connection()
        try:
            conn.execute(
                """INSERT OR IGNORE INTO enrollments (student_id, course_id, enrolled_at)
                   VALUES (?, ?, ?)""",
                (self.student_id, course_id, datetime.now().isoformat())
            )
            conn.commit()
        finally:
            conn.close()

    def unenroll(self, course_id: str):
        conn = self._get_connection()
        try:
            conn.execute(
                "DELETE FROM enrollments WHERE student_id = ? AND course_id = ?",
                (self.student_id, course_id)
            )
            conn.commit()
        finally:
            conn.close()

    def is_enrolled(self, course_id: str) -> bool:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT 1 FROM enrollments WHERE student_id = ? AND course_id = ?",
                (self.student_id, course_id)
            )
            return cursor.fetchone() is not None
        finally:
            conn.close()

    def get_enrolled_course_ids(self) -> list[str]:
        """Get enrolled course IDs, oldest enrollment first."""
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT course_id FROM enrollments
                   WHERE student_id = ? ORDER BY enrolled_at, rowid""",
                (self.student_id,)
            )
            return [row["course_id"] for row in cursor.fetchall()]
        finally:
            conn.close()
