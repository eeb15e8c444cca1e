"""
Navigator - Slide sequencing, quiz gating, and completion bookkeeping.

Provides:
- Navigation events (Next, Prev, JumpTo, QuizComplete, SlideConsumed)
- reduce(): pure (state, event) -> state transition function
- NavigationController: holds current state, persists snapshots, notifies subscribers
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Union

from coursedeck.schemas import ProgressRecord

from .flattener import FlatEntry, FlatSequence
from .progress import ProgressStore

logger = logging.getLogger(__name__)


class NavigationMode(str, Enum):
    """What the learner is looking at."""
    EMPTY = "empty"           # Course has no slides
    VIEWING = "viewing"       # A slide is on screen
    QUIZ_GATE = "quiz_gate"   # End of a module with an unscored quiz
    FINISHED = "finished"     # Past the last slide


@dataclass(frozen=True)
class NavigationState:
    """
    Immutable navigator state.

    current_index stays on the gating slide while in QUIZ_GATE and equals the
    sequence length once FINISHED.
    """
    mode: NavigationMode
    current_index: int = 0
    gate_module: Optional[int] = None
    completed_slides: frozenset[int] = frozenset()
    completed_modules: frozenset[int] = frozenset()
    quiz_scores: dict[int, int] = field(default_factory=dict)

    def to_record(self, course_id: str) -> ProgressRecord:
        return ProgressRecord(
            course_id=course_id,
            current_global_index=self.current_index,
            completed_slides=set(self.completed_slides),
            completed_modules=set(self.completed_modules),
            quiz_scores=dict(self.quiz_scores),
            updated_at=datetime.now(),
        )

    def bookkeeping(self) -> tuple:
        """The persisted part of the state."""
        return (
            self.current_index,
            self.completed_slides,
            self.completed_modules,
            tuple(sorted(self.quiz_scores.items())),
        )


# -----------------------------------------------------------------------------
# Events
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Prev:
    pass


@dataclass(frozen=True)
class JumpTo:
    index: int


@dataclass(frozen=True)
class QuizComplete:
    module_index: int
    score: int  # percent


@dataclass(frozen=True)
class SlideConsumed:
    """Narration for a slide played to its natural end."""
    index: int


NavigationEvent = Union[Next, Prev, JumpTo, QuizComplete, SlideConsumed]


# -----------------------------------------------------------------------------
# Reducer
# -----------------------------------------------------------------------------

def initial_state(course: FlatSequence, record: Optional[ProgressRecord] = None) -> NavigationState:
    """
    Build the entry state from an optional persisted record.

    The resume index is clamped into the current course length.
    """
    completed_slides = frozenset(record.completed_slides) if record else frozenset()
    completed_modules = frozenset(record.completed_modules) if record else frozenset()
    quiz_scores = dict(record.quiz_scores) if record else {}

    if len(course) == 0:
        return NavigationState(
            mode=NavigationMode.EMPTY,
            completed_slides=completed_slides,
            completed_modules=completed_modules,
            quiz_scores=quiz_scores,
        )

    resume_index = record.current_global_index if record else 0
    resume_index = max(0, min(resume_index, len(course) - 1))

    state = NavigationState(
        mode=NavigationMode.VIEWING,
        current_index=resume_index,
        completed_slides=completed_slides,
        completed_modules=completed_modules,
        quiz_scores=quiz_scores,
    )
    return _enter(state, resume_index, course)


def reduce(state: NavigationState, event: NavigationEvent, course: FlatSequence) -> NavigationState:
    """Apply one event. Events that make no sense in the current mode are ignored."""
    if state.mode == NavigationMode.EMPTY:
        return state

    if isinstance(event, Next):
        return _next(state, course)
    if isinstance(event, Prev):
        return _prev(state, course)
    if isinstance(event, JumpTo):
        if 0 <= event.index < len(course):
            return _enter(state, event.index, course)
        return state
    if isinstance(event, QuizComplete):
        return _quiz_complete(state, event, course)
    if isinstance(event, SlideConsumed):
        if state.mode == NavigationMode.VIEWING and event.index == state.current_index:
            return _settle_modules(
                replace(state, completed_slides=state.completed_slides | {event.index}),
                course,
            )
        return state

    raise TypeError(f"Unknown navigation event: {event!r}")


def _next(state: NavigationState, course: FlatSequence) -> NavigationState:
    if state.mode != NavigationMode.VIEWING:
        return state

    index = state.current_index
    crossed = course.boundary_modules(index)
    gate = _first_pending_gate(state, course, crossed)
    if gate is not None:
        return replace(state, mode=NavigationMode.QUIZ_GATE, gate_module=gate)

    return _enter(_complete_empty_modules(state, course, crossed), index + 1, course)


def _prev(state: NavigationState, course: FlatSequence) -> NavigationState:
    if state.mode == NavigationMode.QUIZ_GATE:
        return _enter(state, state.current_index, course)
    if state.mode == NavigationMode.FINISHED:
        return _enter(state, len(course) - 1, course)
    return _enter(state, max(0, state.current_index - 1), course)


def _quiz_complete(state: NavigationState, event: QuizComplete, course: FlatSequence) -> NavigationState:
    if state.mode != NavigationMode.QUIZ_GATE or event.module_index != state.gate_module:
        return state

    # Always advance: pass_threshold is for display only
    state = replace(
        state,
        quiz_scores={**state.quiz_scores, event.module_index: event.score},
        completed_modules=state.completed_modules | {event.module_index},
    )

    crossed = [m for m in course.boundary_modules(state.current_index) if m > event.module_index]
    gate = _first_pending_gate(state, course, crossed)
    if gate is not None:
        return replace(state, gate_module=gate)

    return _enter(_complete_empty_modules(state, course, crossed), state.current_index + 1, course)


def _first_pending_gate(state: NavigationState, course: FlatSequence, module_indices: list[int]) -> Optional[int]:
    for module_index in module_indices:
        if course.modules[module_index].has_quiz and module_index not in state.quiz_scores:
            return module_index
    return None


def _complete_empty_modules(state: NavigationState, course: FlatSequence, module_indices: list[int]) -> NavigationState:
    """Quiz-less modules without slides count as done once passed over."""
    empty = {
        m for m in module_indices
        if not course.modules[m].slides and not course.modules[m].has_quiz
    }
    if not empty - state.completed_modules:
        return state
    return replace(state, completed_modules=state.completed_modules | empty)


def _enter(state: NavigationState, index: int, course: FlatSequence) -> NavigationState:
    """Show slide `index`, or finish when past the end."""
    if index >= len(course):
        return replace(
            state,
            mode=NavigationMode.FINISHED,
            current_index=len(course),
            gate_module=None,
        )
    state = replace(
        state,
        mode=NavigationMode.VIEWING,
        current_index=index,
        gate_module=None,
        completed_slides=state.completed_slides | {index},
    )
    return _settle_modules(state, course)


def _settle_modules(state: NavigationState, course: FlatSequence) -> NavigationState:
    """Complete quiz-less modules whose slides have all been seen."""
    newly_completed = set()
    for module_index, module in enumerate(course.modules):
        if module_index in state.completed_modules or module.has_quiz:
            continue
        indices = course.module_indices(module_index)
        if indices and all(i in state.completed_slides for i in indices):
            newly_completed.add(module_index)
    if not newly_completed:
        return state
    return replace(state, completed_modules=state.completed_modules | newly_completed)


# -----------------------------------------------------------------------------
# Controller
# -----------------------------------------------------------------------------

class NavigationController:
    """
    Drive the reducer for one learner in one course.

    The controller is the only writer of the learner's progress record: every
    state change that touches the bookkeeping is saved as a full snapshot.
    Store failures are logged and never undo the in-memory transition.
    """

    def __init__(
        self,
        course_id: str,
        course: FlatSequence,
        store: ProgressStore,
        record: Optional[ProgressRecord] = None,
    ):
        """
        Initialize controller.

        Args:
            course_id: Course identifier used as the store key
            course: Flattened course
            store: Progress store receiving snapshots
            record: Previously persisted record to resume from, if any
        """
        self.course_id = course_id
        self.course = course
        self.store = store
        self.state = initial_state(course, record)
        self._listeners: list[Callable[[NavigationState], None]] = []

        if self.state.mode != NavigationMode.EMPTY:
            if record is None or not record.same_position(self.state.to_record(course_id)):
                self._persist()

    @classmethod
    def resume(cls, course_id: str, course: FlatSequence, store: ProgressStore) -> "NavigationController":
        """Load the last snapshot from the store and resume from it."""
        try:
            record = store.load(course_id)
        except Exception:
            logger.warning(f"Could not load progress for {course_id}, starting fresh", exc_info=True)
            record = None
        return cls(course_id, course, store, record)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> NavigationMode:
        return self.state.mode

    @property
    def current_entry(self) -> Optional[FlatEntry]:
        """Entry on screen, None outside VIEWING."""
        if self.state.mode != NavigationMode.VIEWING:
            return None
        return self.course[self.state.current_index]

    def is_slide_completed(self, index: int) -> bool:
        return index in self.state.completed_slides

    def is_module_completed(self, module_index: int) -> bool:
        return module_index in self.state.completed_modules

    def get_position(self) -> tuple[int, int]:
        """Slide position as (current, total), 1-based."""
        total = len(self.course)
        return (min(self.state.current_index + 1, total), total)

    def completion_stats(self) -> dict:
        """Get completion statistics for display."""
        total_slides = len(self.course)
        total_modules = len(self.course.modules)
        completed_slides = len([i for i in self.state.completed_slides if i < total_slides])
        completed_modules = len([m for m in self.state.completed_modules if m < total_modules])
        return {
            "total_slides": total_slides,
            "completed_slides": completed_slides,
            "total_modules": total_modules,
            "completed_modules": completed_modules,
            "completion_percent": round(completed_slides / total_slides * 100, 1) if total_slides > 0 else 0,
            "quiz_scores": dict(self.state.quiz_scores),
        }

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Callable[[NavigationState], None]) -> None:
        """Call listener with the new state after every change."""
        self._listeners.append(listener)

    def dispatch(self, event: NavigationEvent) -> NavigationState:
        previous = self.state
        self.state = reduce(previous, event, self.course)
        if self.state == previous:
            return self.state

        if self.state.bookkeeping() != previous.bookkeeping():
            self._persist()

        for listener in self._listeners:
            listener(self.state)
        return self.state

    def next(self) -> NavigationState:
        return self.dispatch(Next())

    def prev(self) -> NavigationState:
        return self.dispatch(Prev())

    def jump_to(self, index: int) -> NavigationState:
        return self.dispatch(JumpTo(index))

    def complete_quiz(self, module_index: int, score: int) -> NavigationState:
        return self.dispatch(QuizComplete(module_index, score))

    def mark_consumed(self, index: int) -> NavigationState:
        return self.dispatch(SlideConsumed(index))

    def _persist(self):
        record = self.state.to_record(self.course_id)
        try:
            self.store.save(self.course_id, record)
        except Exception:
            logger.warning(f"Failed to save progress for {self.course_id}", exc_info=True)
