"""
CourseLibrary - Load course content trees from JSON or YAML files.

Each course lives in <courses_dir>/<course_id>.json (or .yaml/.yml) and is
validated against CourseContent on load.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from coursedeck.schemas import CourseContent

logger = logging.getLogger(__name__)

COURSE_FILE_SUFFIXES = (".json", ".yaml", ".yml")


def load_course_file(file_path: Path) -> CourseContent:
    """
    Parse and validate one course file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file can't be parsed or fails validation
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Course file not found: {file_path}")

    with open(file_path, "r", encoding="utf-8") as f:
        if file_path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    if isinstance(data, dict) and "course_id" not in data:
        data = {**data, "course_id": data.get("courseId", file_path.stem)}
    return CourseContent.model_validate(data)


class CourseLibrary:
    """
    Read-only content provider backed by a directory of course files.

    Parsed courses are cached per instance.
    """

    def __init__(self, courses_dir: str | Path):
        """
        Initialize library.

        Args:
            courses_dir: Directory containing course files
        """
        self.courses_dir = Path(courses_dir)
        self._cache: dict[str, CourseContent] = {}

    def _find_course_file(self, course_id: str) -> Optional[Path]:
        for suffix in COURSE_FILE_SUFFIXES:
            path = self.courses_dir / f"{course_id}{suffix}"
            if path.exists():
                return path
        return None

    def list_course_ids(self) -> list[str]:
        """Get IDs of all course files, sorted."""
        if not self.courses_dir.exists():
            return []
        return sorted({
            p.stem for p in self.courses_dir.iterdir()
            if p.is_file() and p.suffix in COURSE_FILE_SUFFIXES
        })

    def get_course_content(self, course_id: str) -> Optional[CourseContent]:
        """
        Get a fully validated course tree.

        Returns None if the course doesn't exist or its file is invalid.
        """
        course_id = str(course_id)
        if course_id in self._cache:
            return self._cache[course_id]

        path = self._find_course_file(course_id)
        if path is None:
            logger.info(f"Course not found: {course_id}")
            return None

        try:
            content = load_course_file(path)
        except (ValidationError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Invalid course file {path}: {e}")
            return None

        self._cache[course_id] = content
        return content

    def reload(self):
        """Drop cached courses so edited files are picked up."""
        self._cache.clear()
