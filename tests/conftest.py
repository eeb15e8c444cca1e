"""Shared course builders for CourseDeck tests."""

import pytest

from coursedeck.classroom import FlatSequence, MemoryProgressStore
from coursedeck.schemas import CourseContent, CourseModule, Quiz, QuizQuestion, Slide


def make_quiz(num_questions: int = 3, pass_threshold: int = 70) -> Quiz:
    """Quiz where option 0 is always correct."""
    return Quiz(
        title="Module quiz",
        pass_threshold=pass_threshold,
        questions=[
            QuizQuestion(
                question=f"Question {i + 1}?",
                options=["right", "wrong", "also wrong"],
                correct_answer=0,
                explanation=f"Explanation {i + 1}",
            )
            for i in range(num_questions)
        ],
    )


def make_module(title: str, num_slides: int, audio_base_index: int = 0, quiz: Quiz = None) -> CourseModule:
    return CourseModule(
        title=title,
        audio_base_index=audio_base_index,
        slides=[Slide(title=f"{title} slide {i + 1}") for i in range(num_slides)],
        quiz=quiz,
    )


def make_course(slide_counts: list[int], quiz_modules: tuple[int, ...] = (), course_id: str = "course-1") -> CourseContent:
    """
    Course with the given number of slides per module.

    Audio base indices are contiguous; modules listed in quiz_modules get a
    three-question quiz.
    """
    modules = []
    audio_base = 0
    for module_index, count in enumerate(slide_counts):
        modules.append(make_module(
            f"Module {module_index}",
            count,
            audio_base_index=audio_base,
            quiz=make_quiz() if module_index in quiz_modules else None,
        ))
        audio_base += count
    return CourseContent(course_id=course_id, title="Test course", modules=modules)


@pytest.fixture
def store():
    return MemoryProgressStore()


@pytest.fixture
def three_module_course():
    """8/8/8 slides with a quiz on the second module only."""
    return make_course([8, 8, 8], quiz_modules=(1,))


@pytest.fixture
def three_module_sequence(three_module_course):
    return FlatSequence.from_content(three_module_course)


class FakeBackend:
    """Audio backend that holds loads until the test resolves them."""

    def __init__(self, fail_on_load: bool = False):
        self.loads = []           # (url, callbacks)
        self.commands = []
        self.fail_on_load = fail_on_load

    def load(self, url, callbacks):
        if self.fail_on_load:
            raise RuntimeError("decoder crashed")
        self.loads.append((url, callbacks))

    def play(self):
        self.commands.append("play")

    def pause(self):
        self.commands.append("pause")

    def seek(self, position):
        self.commands.append(("seek", position))

    def stop(self):
        self.commands.append("stop")

    def callbacks_for(self, url):
        return [cb for u, cb in self.loads if u == url][-1]


def resolve_audio(audio_index: int) -> str:
    return f"audio/{audio_index:02d}.wav"
