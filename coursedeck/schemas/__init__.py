"""
CourseDeck Schemas - Pydantic models for the course player.

This module exports all schema classes for:
- Content: modules, slides, narration, quizzes
- Progress: per-course resume point and completion bookkeeping
"""

# Content schemas
from .content import (
    ModuleType,
    Speaker,
    NarrationScript,
    Slide,
    QuizQuestion,
    Quiz,
    CourseModule,
    CourseContent,
)

# Progress schemas
from .progress import (
    ProgressRecord,
)

__all__ = [
    # Content
    'ModuleType',
    'Speaker',
    'NarrationScript',
    'Slide',
    'QuizQuestion',
    'Quiz',
    'CourseModule',
    'CourseContent',
    # Progress
    'ProgressRecord',
]
