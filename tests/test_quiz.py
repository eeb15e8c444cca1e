"""
Quiz engine tests for CourseDeck.

Tests sequential traversal, answer locking and scoring.
"""

from coursedeck.classroom import QuestionPhase, QuizComplete, QuizEngine, calculate_quiz_score

from conftest import make_quiz


def answer_all(engine: QuizEngine, choices: list[int]):
    result = None
    for choice in choices:
        assert engine.select(choice)
        result = engine.advance()
    return result


class TestQuizScore:
    """Test score calculation."""

    def test_rounding(self):
        assert calculate_quiz_score(2, 3)["percent"] == 67
        assert calculate_quiz_score(1, 3)["percent"] == 33
        assert calculate_quiz_score(5, 8)["percent"] == 63
        assert calculate_quiz_score(1, 8)["percent"] == 13
        assert calculate_quiz_score(1, 40)["percent"] == 3

    def test_all_and_none(self):
        assert calculate_quiz_score(4, 4)["percent"] == 100
        assert calculate_quiz_score(0, 4)["percent"] == 0

    def test_no_questions(self):
        assert calculate_quiz_score(0, 0) == {"percent": 100, "correct": 0, "total": 0}


class TestQuizEngine:
    """Test the question walker."""

    def test_starts_on_first_question(self):
        engine = QuizEngine(make_quiz(3), module_index=1)
        assert engine.current.index == 0
        assert engine.current.phase == QuestionPhase.UNANSWERED
        assert engine.current.explanation is None

    def test_two_of_three_correct(self):
        engine = QuizEngine(make_quiz(3), module_index=1)
        result = answer_all(engine, [0, 1, 0])
        assert result == QuizComplete(module_index=1, score=67)
        assert engine.finished
        assert engine.current is None

    def test_answer_is_locked(self):
        engine = QuizEngine(make_quiz(2), module_index=0)
        assert engine.select(1)
        assert not engine.select(0)
        assert engine.current.selected == 1
        assert engine.current.is_correct is False
        assert engine.current.phase == QuestionPhase.ANSWERED
        assert engine.current.explanation == "Explanation 1"

    def test_cannot_advance_unanswered(self):
        engine = QuizEngine(make_quiz(2), module_index=0)
        assert engine.advance() is None
        assert engine.current_index == 0

    def test_invalid_option_rejected(self):
        engine = QuizEngine(make_quiz(1), module_index=0)
        assert not engine.select(3)
        assert not engine.select(-1)
        assert engine.current.selected is None

    def test_advance_moves_one_question(self):
        engine = QuizEngine(make_quiz(3), module_index=0)
        engine.select(0)
        assert engine.advance() is None
        assert engine.current_index == 1
        assert engine.current.phase == QuestionPhase.UNANSWERED

    def test_no_actions_after_finish(self):
        engine = QuizEngine(make_quiz(1), module_index=0)
        assert answer_all(engine, [0]) == QuizComplete(0, 100)
        assert not engine.select(0)
        assert engine.advance() is None

    def test_passed_is_display_only(self):
        engine = QuizEngine(make_quiz(2, pass_threshold=70), module_index=0)
        result = answer_all(engine, [0, 2])
        assert result.score == 50
        assert not engine.passed

    def test_fresh_engine_has_no_answers(self):
        quiz = make_quiz(2)
        first = QuizEngine(quiz, module_index=0)
        first.select(1)
        second = QuizEngine(quiz, module_index=0)
        assert second.current.selected is None
        assert second.correct_count == 0

    def test_results_review(self):
        engine = QuizEngine(make_quiz(2), module_index=0)
        answer_all(engine, [0, 1])
        results = engine.results()
        assert [r["is_correct"] for r in results] == [True, False]
        assert results[1]["selected"] == 1
        assert results[1]["correct_answer"] == 0
        assert results[1]["options"] == ["right", "wrong", "also wrong"]

    def test_half_scores_round_up(self):
        engine = QuizEngine(make_quiz(8), module_index=0)
        result = answer_all(engine, [0, 0, 0, 0, 0, 1, 1, 1])
        assert result == QuizComplete(module_index=0, score=63)
