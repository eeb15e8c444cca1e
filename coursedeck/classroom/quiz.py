"""
Quiz engine - Walk a module quiz one question at a time.

Provides:
- QuizEngine: sequential traversal with locked answers
- calculate_quiz_score(): percent score from a correct count
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from coursedeck.schemas import Quiz, QuizQuestion

from .navigator import QuizComplete


class QuestionPhase(str, Enum):
    UNANSWERED = "unanswered"
    ANSWERED = "answered"       # Choice locked, explanation shown


@dataclass
class QuestionAttempt:
    """Learner's answer to one question."""
    index: int
    question: QuizQuestion
    selected: Optional[int] = None

    @property
    def phase(self) -> QuestionPhase:
        return QuestionPhase.UNANSWERED if self.selected is None else QuestionPhase.ANSWERED

    @property
    def is_correct(self) -> Optional[bool]:
        if self.selected is None:
            return None
        return self.selected == self.question.correct_answer

    @property
    def explanation(self) -> Optional[str]:
        """Explanation text, hidden until answered."""
        if self.selected is None:
            return None
        return self.question.explanation


def calculate_quiz_score(correct_count: int, total: int) -> dict:
    """
    Calculate quiz score.

    Args:
        correct_count: Number answered correctly
        total: Total questions

    Returns:
        Dict with score info
    """
    if total == 0:
        return {"percent": 100, "correct": 0, "total": 0}

    return {
        "percent": int(100 * correct_count / total + 0.5),  # half up
        "correct": correct_count,
        "total": total,
    }


class QuizEngine:
    """
    One attempt at a module quiz.

    A new engine is created every time the learner reaches the quiz gate, so
    nothing carries over between attempts.
    """

    def __init__(self, quiz: Quiz, module_index: int):
        self.quiz = quiz
        self.module_index = module_index
        self.attempts = [
            QuestionAttempt(index=i, question=q) for i, q in enumerate(quiz.questions)
        ]
        self.current_index = 0
        self.finished = False

    @property
    def total_questions(self) -> int:
        return len(self.attempts)

    @property
    def current(self) -> Optional[QuestionAttempt]:
        if self.finished or not self.attempts:
            return None
        return self.attempts[self.current_index]

    @property
    def is_last(self) -> bool:
        return self.current_index == len(self.attempts) - 1

    @property
    def correct_count(self) -> int:
        return sum(1 for a in self.attempts if a.is_correct)

    @property
    def score(self) -> int:
        return calculate_quiz_score(self.correct_count, self.total_questions)["percent"]

    @property
    def passed(self) -> bool:
        """Display only; the navigator never blocks on this."""
        return self.score >= self.quiz.pass_threshold

    def select(self, option_index: int) -> bool:
        """
        Answer the current question.

        Returns False if the question was already answered or the option
        does not exist.
        """
        attempt = self.current
        if attempt is None or attempt.selected is not None:
            return False
        if not 0 <= option_index < len(attempt.question.options):
            return False
        attempt.selected = option_index
        return True

    def advance(self) -> Optional[QuizComplete]:
        """
        Move past the current question.

        Returns the completion event after the last question, None otherwise
        (including when the current question is still unanswered).
        """
        attempt = self.current
        if attempt is None or attempt.selected is None:
            return None
        if self.is_last:
            self.finished = True
            return QuizComplete(self.module_index, self.score)
        self.current_index += 1
        return None

    def results(self) -> list[dict]:
        """Per-question review for the results screen."""
        return [
            {
                "question": a.question.question,
                "options": list(a.question.options),
                "selected": a.selected,
                "correct_answer": a.question.correct_answer,
                "is_correct": a.is_correct,
                "explanation": a.question.explanation,
            }
            for a in self.attempts
        ]
