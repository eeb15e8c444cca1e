"""
CoursePlayer - One learner's playback session in one course.

Wires the flattened course, navigator, audio synchronizer and quiz engine
together and exposes a single view snapshot plus user intents for the
presentation layer.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from coursedeck.schemas import CourseContent, CourseModule

from .audio import AudioBackend, AudioSynchronizer, TransportState
from .flattener import FlatEntry, FlatSequence
from .navigator import NavigationController, NavigationMode, NavigationState, QuizComplete
from .progress import ProgressStore
from .quiz import QuizEngine

logger = logging.getLogger(__name__)


class PlayerEntryError(Exception):
    """Course can't be opened."""

    def __init__(self, course_id: str, message: str):
        super().__init__(message)
        self.course_id = course_id


class CourseNotFoundError(PlayerEntryError):
    def __init__(self, course_id: str):
        super().__init__(course_id, f"Course not found: {course_id}")


class NotEnrolledError(PlayerEntryError):
    def __init__(self, course_id: str):
        super().__init__(course_id, f"Not enrolled in course: {course_id}")


class ContentProvider(Protocol):
    def get_course_content(self, course_id: str) -> Optional[CourseContent]:
        ...


class EnrollmentGate(Protocol):
    def is_enrolled(self, course_id: str) -> bool:
        ...


@dataclass
class QuizView:
    """
    Quiz sub-state for rendering.

    While finished is False the question fields describe the current
    question. Once the last question is answered the results fields are
    filled in and the question fields are cleared.
    """
    module_index: int
    title: str
    intro_text: str
    total_questions: int
    correct_count: int
    pass_threshold: int
    finished: bool = False
    question_number: int = 0      # 1-based
    question: str = ""
    options: list[str] = field(default_factory=list)
    selected: Optional[int] = None
    is_correct: Optional[bool] = None
    explanation: Optional[str] = None
    is_last: bool = False
    score: Optional[int] = None
    passed: Optional[bool] = None
    results: list[dict] = field(default_factory=list)


@dataclass
class PlayerView:
    """Everything the presentation layer needs for one render."""
    course_id: str
    course_title: str
    mode: NavigationMode
    position: int             # 1-based slide number
    total_slides: int
    entry: Optional[FlatEntry]
    module: Optional[CourseModule]
    transport: TransportState
    quiz: Optional[QuizView]
    stats: dict
    can_go_back: bool
    can_go_next: bool


class CoursePlayer:
    """
    Playback session for one course.

    The navigator is the source of truth. After every state change the
    player re-binds audio to the slide on screen and starts a fresh quiz
    attempt whenever a quiz gate is entered.
    """

    def __init__(
        self,
        content: CourseContent,
        store: ProgressStore,
        audio_resolver: Callable[[int], str],
        audio_backend: AudioBackend,
    ):
        """
        Initialize player and resume from the store.

        Args:
            content: Validated course tree
            store: Progress store for this learner
            audio_resolver: audio index -> URL ("" for none)
            audio_backend: Audio transport implementation
        """
        self.content = content
        self.course = FlatSequence.from_content(content)
        self.navigator = NavigationController.resume(content.course_id, self.course, store)
        self.audio = AudioSynchronizer(
            self.course,
            audio_resolver,
            audio_backend,
            on_consumed=self.navigator.mark_consumed,
        )
        self.quiz: Optional[QuizEngine] = None
        self._quiz_gate: Optional[int] = None
        self._quiz_result: Optional[QuizComplete] = None

        self.navigator.subscribe(self._on_state_change)
        self._on_state_change(self.navigator.state)

    @classmethod
    def open(
        cls,
        course_id: str,
        library: ContentProvider,
        enrollment: EnrollmentGate,
        store: ProgressStore,
        audio_resolver: Callable[[int], str],
        audio_backend: AudioBackend,
    ) -> "CoursePlayer":
        """
        Check enrollment, load content and resume.

        Raises:
            NotEnrolledError: Learner isn't enrolled in the course
            CourseNotFoundError: Content provider has no such course
        """
        course_id = str(course_id)
        if not enrollment.is_enrolled(course_id):
            raise NotEnrolledError(course_id)

        content = library.get_course_content(course_id)
        if content is None:
            raise CourseNotFoundError(course_id)

        player = cls(content, store, audio_resolver, audio_backend)
        logger.info(
            f"Opened course {course_id} at slide {player.navigator.state.current_index} "
            f"of {len(player.course)}"
        )
        return player

    @property
    def state(self) -> NavigationState:
        return self.navigator.state

    @property
    def has_content(self) -> bool:
        return self.navigator.mode != NavigationMode.EMPTY

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    def next(self):
        self.navigator.next()

    def prev(self):
        self.navigator.prev()

    def jump_to(self, index: int):
        self.navigator.jump_to(index)

    def play(self) -> bool:
        return self.audio.play()

    def pause(self):
        self.audio.pause()

    def toggle_audio(self) -> bool:
        return self.audio.toggle()

    def seek(self, position: float):
        self.audio.seek(position)

    def select_option(self, option_index: int) -> bool:
        if self.quiz is None:
            return False
        return self.quiz.select(option_index)

    def advance_question(self):
        """Move to the next question, or to the results summary after the last one."""
        if self.quiz is None:
            return
        result = self.quiz.advance()
        if result is not None:
            self._quiz_result = result

    def finish_quiz(self):
        """Leave the results summary and report the score to the navigator."""
        result = self._quiz_result
        if result is None:
            return
        logger.info(f"Quiz for module {result.module_index} completed with {result.score}%")
        self.navigator.dispatch(result)

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    def view(self) -> PlayerView:
        state = self.navigator.state
        entry = self.navigator.current_entry
        if entry is not None:
            module = self.course.modules[entry.module_index]
        elif state.mode == NavigationMode.QUIZ_GATE:
            module = self.course.modules[state.gate_module]
        else:
            module = None

        position, total = self.navigator.get_position()
        return PlayerView(
            course_id=self.content.course_id,
            course_title=self.content.title,
            mode=state.mode,
            position=position,
            total_slides=total,
            entry=entry,
            module=module,
            transport=self.audio.transport,
            quiz=self._quiz_view(),
            stats=self.navigator.completion_stats(),
            can_go_back=state.mode != NavigationMode.EMPTY and (
                state.mode != NavigationMode.VIEWING or state.current_index > 0
            ),
            can_go_next=state.mode == NavigationMode.VIEWING,
        )

    def _quiz_view(self) -> Optional[QuizView]:
        if self.quiz is None or not self.quiz.attempts:
            return None
        quiz = self.quiz
        view = QuizView(
            module_index=quiz.module_index,
            title=quiz.quiz.title,
            intro_text=quiz.quiz.intro_text,
            total_questions=quiz.total_questions,
            correct_count=quiz.correct_count,
            pass_threshold=quiz.quiz.pass_threshold,
        )
        if quiz.finished:
            view.finished = True
            view.score = quiz.score
            view.passed = quiz.passed
            view.results = quiz.results()
            return view

        attempt = quiz.current
        view.question_number = attempt.index + 1
        view.question = attempt.question.question
        view.options = list(attempt.question.options)
        view.selected = attempt.selected
        view.is_correct = attempt.is_correct
        view.explanation = attempt.explanation
        view.is_last = quiz.is_last
        return view

    def _on_state_change(self, state: NavigationState):
        if state.mode == NavigationMode.VIEWING:
            self.audio.bind(state.current_index)
        else:
            self.audio.bind(None)

        if state.mode == NavigationMode.QUIZ_GATE:
            if state.gate_module != self._quiz_gate:
                module = self.course.modules[state.gate_module]
                self.quiz = QuizEngine(module.quiz, state.gate_module)
                self._quiz_gate = state.gate_module
                self._quiz_result = None
        else:
            self.quiz = None
            self._quiz_gate = None
            self._quiz_result = None
