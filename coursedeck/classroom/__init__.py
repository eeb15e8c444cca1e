"""
CourseDeck Classroom - Runtime components for playing a course.

This module provides:
- Flattener: course tree -> globally indexed slide sequence
- NavigationController: slide navigation, quiz gating, completion bookkeeping
- AudioSynchronizer: narration bound to the slide on screen
- QuizEngine: module quiz walker and scoring
- Progress stores and enrollment registry
- CourseLibrary: course content provider
- CoursePlayer: session wiring for the presentation layer
"""

from .flattener import (
    FlatEntry,
    FlatSequence,
    flatten,
    is_last_in_module,
    total_slide_count,
)

from .progress import (
    ProgressStore,
    SQLiteProgressStore,
    JsonProgressStore,
    MemoryProgressStore,
    EnrollmentRegistry,
    DEFAULT_PROGRESS_DIR,
    DEFAULT_PROGRESS_DB,
)

from .navigator import (
    NavigationMode,
    NavigationState,
    NavigationController,
    Next,
    Prev,
    JumpTo,
    QuizComplete,
    SlideConsumed,
    initial_state,
    reduce,
)

from .quiz import (
    QuizEngine,
    QuestionPhase,
    QuestionAttempt,
    calculate_quiz_score,
)

from .audio import (
    AudioCatalog,
    AudioBackend,
    AudioCallbacks,
    AudioSynchronizer,
    TransportState,
    WaveFileBackend,
)

from .loader import (
    CourseLibrary,
    load_course_file,
)

from .player import (
    CoursePlayer,
    PlayerView,
    QuizView,
    PlayerEntryError,
    CourseNotFoundError,
    NotEnrolledError,
)

__all__ = [
    # Flattener
    "FlatEntry",
    "FlatSequence",
    "flatten",
    "is_last_in_module",
    "total_slide_count",
    # Progress
    "ProgressStore",
    "SQLiteProgressStore",
    "JsonProgressStore",
    "MemoryProgressStore",
    "EnrollmentRegistry",
    "DEFAULT_PROGRESS_DIR",
    "DEFAULT_PROGRESS_DB",
    # Navigator
    "NavigationMode",
    "NavigationState",
    "NavigationController",
    "Next",
    "Prev",
    "JumpTo",
    "QuizComplete",
    "SlideConsumed",
    "initial_state",
    "reduce",
    # Quiz
    "QuizEngine",
    "QuestionPhase",
    "QuestionAttempt",
    "calculate_quiz_score",
    # Audio
    "AudioCatalog",
    "AudioBackend",
    "AudioCallbacks",
    "AudioSynchronizer",
    "TransportState",
    "WaveFileBackend",
    # Loader
    "CourseLibrary",
    "load_course_file",
    # Player
    "CoursePlayer",
    "PlayerView",
    "QuizView",
    "PlayerEntryError",
    "CourseNotFoundError",
    "NotEnrolledError",
]
