"""
Course content schemas for CourseDeck.

Defines Pydantic models for the course outline:
- Narration scripts and slides
- Module quizzes
- Modules and the full course tree
"""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class ModuleType(str, Enum):
    TEASER = "teaser"
    INTRODUCTION = "introduction"
    MODULE = "module"
    CONCLUSION = "conclusion"


# -----------------------------------------------------------------------------
# Slides
# -----------------------------------------------------------------------------

class Speaker(BaseModel):
    speaker: str
    emotion: str = "neutral"
    text: str


class NarrationScript(BaseModel):
    mode: str = "single"
    speakers: list[Speaker] = []

    @property
    def text(self) -> str:
        """Narration lines joined for display."""
        return "\n".join(line.text for line in self.speakers)


class Slide(BaseModel):
    """
    One narrated slide.

    visual_content is passed through untouched to the presentation layer.
    audio_url, when set, overrides the module's audio addressing.
    """
    id: Optional[int | str] = None
    title: str
    slide_type: str = Field("bullet_points", validation_alias=AliasChoices("slide_type", "kind"))
    duration_seconds: int = Field(0, ge=0)
    visual_content: dict[str, Any] = {}
    narration_script: NarrationScript = NarrationScript()
    audio_url: Optional[str] = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)


# -----------------------------------------------------------------------------
# Quizzes
# -----------------------------------------------------------------------------

class QuizQuestion(BaseModel):
    id: Optional[int | str] = None
    type: str = "multiple_choice"
    question: str
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    explanation: str = ""
    difficulty: str = "medium"
    category: str = ""

    @model_validator(mode="after")
    def check_correct_answer(self) -> "QuizQuestion":
        if self.correct_answer >= len(self.options):
            raise ValueError(
                f"correct_answer {self.correct_answer} out of range for {len(self.options)} options"
            )
        return self


class Quiz(BaseModel):
    title: str = "Quiz"
    intro_text: str = ""
    questions: list[QuizQuestion] = []
    pass_threshold: int = Field(70, ge=0, le=100)  # percent

    @field_validator("pass_threshold", mode="before")
    @classmethod
    def default_zero_threshold(cls, v):
        # Content exported from the admin uses 0 for "not set"
        return v or 70


# -----------------------------------------------------------------------------
# Modules and course tree
# -----------------------------------------------------------------------------

class CourseModule(BaseModel):
    type: ModuleType = ModuleType.MODULE
    title: str
    sequence: int = 0
    audio_base_index: int = Field(
        0, ge=0, validation_alias=AliasChoices("audio_base_index", "audioFileIndex")
    )
    slides: list[Slide] = []
    quiz: Optional[Quiz] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def has_quiz(self) -> bool:
        """True if the module carries a quiz that can actually be taken."""
        return self.quiz is not None and len(self.quiz.questions) > 0


class CourseContent(BaseModel):
    course_id: str
    title: str
    audio_base_path: str = ""
    modules: list[CourseModule] = []

    @field_validator("course_id", mode="before")
    @classmethod
    def coerce_course_id(cls, v):
        return str(v)

    @property
    def total_modules(self) -> int:
        return len(self.modules)

    @property
    def total_slides(self) -> int:
        return sum(len(m.slides) for m in self.modules)

    @property
    def total_quiz_questions(self) -> int:
        return sum(len(m.quiz.questions) for m in self.modules if m.quiz)
