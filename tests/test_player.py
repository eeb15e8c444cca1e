"""
Course player tests for CourseDeck.

Tests course entry, resume, the quiz flow through the player and the
audio/navigation wiring.
"""

import pytest

from coursedeck.classroom import (
    CourseNotFoundError,
    CoursePlayer,
    NavigationMode,
    NotEnrolledError,
)
from coursedeck.schemas import ProgressRecord

from conftest import FakeBackend, make_course, resolve_audio


class FakeLibrary:
    def __init__(self, *courses):
        self.courses = {c.course_id: c for c in courses}

    def get_course_content(self, course_id):
        return self.courses.get(course_id)


class FakeEnrollment:
    def __init__(self, *course_ids):
        self.course_ids = set(course_ids)

    def is_enrolled(self, course_id):
        return course_id in self.course_ids


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def player(three_module_course, store, backend):
    return CoursePlayer(three_module_course, store, resolve_audio, backend)


class TestOpen:
    """Test course entry checks."""

    def test_not_enrolled(self, three_module_course, store, backend):
        with pytest.raises(NotEnrolledError) as exc_info:
            CoursePlayer.open(
                "course-1", FakeLibrary(three_module_course), FakeEnrollment(),
                store, resolve_audio, backend,
            )
        assert exc_info.value.course_id == "course-1"
        assert store.save_count == 0

    def test_course_not_found(self, store, backend):
        with pytest.raises(CourseNotFoundError):
            CoursePlayer.open(
                "missing", FakeLibrary(), FakeEnrollment("missing"),
                store, resolve_audio, backend,
            )

    def test_open_starts_at_first_slide(self, three_module_course, store, backend):
        player = CoursePlayer.open(
            "course-1", FakeLibrary(three_module_course), FakeEnrollment("course-1"),
            store, resolve_audio, backend,
        )
        assert player.state.mode == NavigationMode.VIEWING
        assert player.state.current_index == 0
        assert store.load("course-1").current_global_index == 0

    def test_resume_is_clamped(self, three_module_course, store, backend):
        store.save("course-1", ProgressRecord(course_id="course-1", current_global_index=99))
        player = CoursePlayer(three_module_course, store, resolve_audio, backend)
        assert player.state.current_index == 23
        assert store.load("course-1").current_global_index == 23


class TestAudioWiring:
    """Test that audio follows the slide on screen."""

    def test_audio_bound_on_entry(self, player, backend):
        assert backend.loads[-1][0] == "audio/00.wav"
        assert player.view().transport.global_index == 0

    def test_audio_follows_navigation(self, player, backend):
        player.next()
        player.next()
        assert backend.loads[-1][0] == "audio/02.wav"
        player.jump_to(10)
        assert player.view().transport.audio_index == 10

    def test_audio_unbound_at_gate(self, player):
        player.jump_to(15)
        player.next()
        assert player.state.mode == NavigationMode.QUIZ_GATE
        assert player.view().transport.global_index is None

    def test_audio_end_marks_slide_completed(self, player, backend, store):
        player.jump_to(3)
        callbacks = backend.callbacks_for("audio/03.wav")
        callbacks.on_ready(5.0)
        assert player.play()
        callbacks.on_ended()
        assert 3 in player.state.completed_slides
        assert 3 in store.load("course-1").completed_slides
        assert not player.view().transport.is_playing

    def test_transport_controls(self, player, backend):
        backend.callbacks_for("audio/00.wav").on_ready(10.0)
        assert player.toggle_audio() is True
        player.seek(4.0)
        assert player.view().transport.position == 4.0
        player.pause()
        assert not player.view().transport.is_playing


class TestQuizFlow:
    """Test taking a gating quiz through the player."""

    def test_gate_creates_quiz(self, player):
        player.jump_to(15)
        player.next()
        view = player.view()
        assert view.module.title == "Module 1"
        assert view.quiz.module_index == 1
        assert view.quiz.question_number == 1
        assert view.quiz.total_questions == 3
        assert view.quiz.selected is None
        assert not view.can_go_next

    def test_two_of_three_then_advance(self, player, store):
        player.jump_to(15)
        player.next()
        for choice in (0, 1, 0):
            assert player.select_option(choice)
            player.advance_question()
        player.finish_quiz()

        assert player.state.mode == NavigationMode.VIEWING
        assert player.state.current_index == 16
        assert player.state.quiz_scores == {1: 67}
        assert player.quiz is None
        assert store.load("course-1").quiz_scores == {1: 67}

    def test_results_summary_before_continuing(self, store, backend):
        player = CoursePlayer(make_course([1, 1], quiz_modules=(0,)), store, resolve_audio, backend)
        player.next()
        for choice in (0, 2, 0):
            player.select_option(choice)
            player.advance_question()

        assert player.state.mode == NavigationMode.QUIZ_GATE
        assert 0 not in player.state.quiz_scores
        quiz = player.view().quiz
        assert quiz.finished
        assert quiz.score == 67
        assert quiz.passed is False
        assert quiz.correct_count == 2
        assert [r["is_correct"] for r in quiz.results] == [True, False, True]
        assert quiz.results[1]["selected"] == 2
        assert quiz.results[1]["correct_answer"] == 0
        assert quiz.question == ""

        player.finish_quiz()
        assert player.state.mode == NavigationMode.VIEWING
        assert player.state.current_index == 1
        assert player.state.quiz_scores == {0: 67}

    def test_finish_before_last_answer_ignored(self, player):
        player.jump_to(15)
        player.next()
        player.select_option(0)
        player.advance_question()
        player.finish_quiz()
        assert player.state.mode == NavigationMode.QUIZ_GATE
        assert player.view().quiz.question_number == 2

    def test_leaving_summary_discards_score(self, player):
        player.jump_to(15)
        player.next()
        for choice in (0, 0, 0):
            player.select_option(choice)
            player.advance_question()
        player.prev()
        player.finish_quiz()
        assert player.state.mode == NavigationMode.VIEWING
        assert player.state.current_index == 15
        assert player.state.quiz_scores == {}

    def test_answer_feedback_in_view(self, player):
        player.jump_to(15)
        player.next()
        player.select_option(2)
        quiz = player.view().quiz
        assert quiz.selected == 2
        assert quiz.is_correct is False
        assert quiz.explanation == "Explanation 1"

    def test_reentering_gate_starts_fresh_attempt(self, player):
        player.jump_to(15)
        player.next()
        player.select_option(0)
        player.advance_question()
        player.prev()
        assert player.quiz is None
        player.next()
        assert player.view().quiz.question_number == 1
        assert player.quiz.correct_count == 0

    def test_select_outside_quiz(self, player):
        assert not player.select_option(0)
        player.advance_question()
        assert player.state.current_index == 0


class TestView:
    """Test the render snapshot."""

    def test_first_slide(self, player):
        view = player.view()
        assert view.position == 1
        assert view.total_slides == 24
        assert view.entry.slide.title == "Module 0 slide 1"
        assert view.module.title == "Module 0"
        assert not view.can_go_back
        assert view.can_go_next
        assert view.stats["completed_slides"] == 1

    def test_finished(self, player):
        player.jump_to(23)
        player.next()
        view = player.view()
        assert view.mode == NavigationMode.FINISHED
        assert view.entry is None
        assert view.module is None
        assert view.position == 24
        assert view.can_go_back
        assert not view.can_go_next

    def test_empty_course(self, store, backend):
        player = CoursePlayer(make_course([]), store, resolve_audio, backend)
        assert not player.has_content
        player.next()
        view = player.view()
        assert view.mode == NavigationMode.EMPTY
        assert view.entry is None
        assert view.total_slides == 0
        assert not view.can_go_back
        assert not view.can_go_next
        assert backend.loads == []
        assert store.save_count == 0
