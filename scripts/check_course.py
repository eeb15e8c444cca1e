#!/usr/bin/env python3
"""
check_course.py - Validate course files and report playback structure.

Loads each course through the same library the player uses, flattens it and
reports slide/quiz counts, audio coverage and audio index collisions between
modules. Optionally enrolls the configured student in the checked courses.

Usage:
  python scripts/check_course.py
  python scripts/check_course.py --course medical-spanish
  python scripts/check_course.py --courses-dir data/courses --audio-dir data/audio --enroll
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from coursedeck.classroom import AudioCatalog, CourseLibrary, EnrollmentRegistry, FlatSequence
from coursedeck.schemas import CourseContent
from coursedeck.utils import configure_logging, load_config

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Checks
# -----------------------------------------------------------------------------

def find_audio_collisions(content: CourseContent) -> list[str]:
    """Report audio indices claimed by more than one module."""
    owners: dict[int, int] = {}
    issues = []
    for module_index, module in enumerate(content.modules):
        for offset in range(len(module.slides)):
            audio_index = module.audio_base_index + offset
            if audio_index in owners:
                issues.append(
                    f"audio index {audio_index} used by modules {owners[audio_index]} and {module_index}"
                )
            else:
                owners[audio_index] = module_index
    return issues


def check_course(content: CourseContent, catalog: AudioCatalog) -> dict:
    """Flatten a course and collect stats and issues."""
    course = FlatSequence.from_content(content)
    issues = find_audio_collisions(content)

    missing_audio = [
        entry.global_index for entry in course
        if not entry.slide.audio_url and not catalog.get_audio_url(entry.audio_index)
    ]
    if catalog.has_audio() and missing_audio:
        issues.append(f"{len(missing_audio)} slides without audio: {missing_audio[:10]}")

    for module_index, module in enumerate(content.modules):
        if module.quiz is not None and not module.has_quiz:
            issues.append(f"module {module_index} has a quiz without questions (not gated)")
        if not module.slides:
            issues.append(f"module {module_index} has no slides")

    if len(course) == 0:
        issues.append("course has no slides")

    return {
        "modules": content.total_modules,
        "slides": len(course),
        "quizzes": sum(1 for m in content.modules if m.has_quiz),
        "quiz_questions": content.total_quiz_questions,
        "audio_files": len(catalog),
        "slides_with_audio": len(course) - len(missing_audio),
        "issues": issues,
    }


# -----------------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------------

def main():
    config = load_config()
    configure_logging(config.log_level)

    parser = argparse.ArgumentParser(
        description="Validate course files and report playback structure"
    )
    parser.add_argument(
        "--courses-dir",
        type=Path,
        default=config.courses_dir,
        help=f"Directory of course files (default: {config.courses_dir})"
    )
    parser.add_argument(
        "--audio-dir",
        type=Path,
        default=config.audio_dir,
        help=f"Audio root directory (default: {config.audio_dir})"
    )
    parser.add_argument(
        "--course",
        action="append",
        default=None,
        help="Course ID to check (repeatable, default: all)"
    )
    parser.add_argument(
        "--enroll",
        action="store_true",
        help="Enroll the configured student in every valid course checked"
    )

    args = parser.parse_args()

    library = CourseLibrary(args.courses_dir)
    course_ids = args.course or library.list_course_ids()
    if not course_ids:
        logger.error(f"No course files found in {args.courses_dir}")
        sys.exit(1)

    registry = EnrollmentRegistry(config.progress_db, config.student_id) if args.enroll else None

    failed = 0
    for course_id in course_ids:
        content = library.get_course_content(course_id)
        if content is None:
            logger.error(f"{course_id}: missing or invalid")
            failed += 1
            continue

        catalog = AudioCatalog.for_course(args.audio_dir, content.audio_base_path)
        report = check_course(content, catalog)

        logger.info(f"{course_id}: {content.title}")
        logger.info(f"  Modules: {report['modules']}  Slides: {report['slides']}")
        logger.info(f"  Quizzes: {report['quizzes']} ({report['quiz_questions']} questions)")
        logger.info(f"  Audio: {report['slides_with_audio']}/{report['slides']} slides, {report['audio_files']} files")
        for issue in report["issues"]:
            logger.warning(f"  - {issue}")

        if registry is not None and report["slides"] > 0:
            registry.enroll(course_id)
            logger.info(f"  Enrolled student '{config.student_id}'")

    if failed:
        logger.error(f"{failed} of {len(course_ids)} courses failed to load")
        sys.exit(1)


if __name__ == "__main__":
    main()
