"""
Progress tracking schemas for CourseDeck.

Defines Pydantic models for a learner's resume point and completion
bookkeeping in one course.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ProgressRecord(BaseModel):
    course_id: str
    current_global_index: int = Field(0, ge=0)
    completed_slides: set[int] = set()
    completed_modules: set[int] = set()
    quiz_scores: dict[int, int] = {}  # module index -> percent
    updated_at: Optional[datetime] = None

    @field_validator("quiz_scores", mode="before")
    @classmethod
    def strip_module_key_prefix(cls, v):
        # Older exports keyed scores as "mod_<index>"
        if isinstance(v, dict):
            return {
                (k[4:] if isinstance(k, str) and k.startswith("mod_") else k): score
                for k, score in v.items()
            }
        return v

    @model_validator(mode="after")
    def scored_modules_are_completed(self) -> "ProgressRecord":
        self.completed_modules |= set(self.quiz_scores)
        return self

    def same_position(self, other: "ProgressRecord") -> bool:
        """Compare everything except the timestamp."""
        return (
            self.current_global_index == other.current_global_index
            and self.completed_slides == other.completed_slides
            and self.completed_modules == other.completed_modules
            and self.quiz_scores == other.quiz_scores
        )
