from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from lingoraft.utils.rounding import round_half_up

SessionMode = Literal["chat", "lesson"]


class MistakeCounters(BaseModel):
    """How often each mistake category was seen during a lesson."""

    missing_spaces: int = 0
    extra_spaces: int = 0
    wrong_capitalization: int = 0
    other: int = 0


class LessonStats(BaseModel):
    """Running statistics for the lesson in progress."""

    total_prompts: int = Field(0, ge=0)
    completed_prompts: int = Field(0, ge=0)
    attempt_count: int = Field(0, ge=0)
    accuracy_sum: int = Field(0, ge=0)
    average_accuracy: int = Field(0, ge=0, le=100)
    common_mistakes: MistakeCounters = Field(default_factory=MistakeCounters)

    @classmethod
    def empty(cls, total_prompts: int) -> "LessonStats":
        return cls(total_prompts=total_prompts)

    def record_accuracy(self, accuracy: int) -> None:
        """Fold one scored attempt into the running mean."""
        self.attempt_count += 1
        self.accuracy_sum += accuracy
        self.average_accuracy = round_half_up(self.accuracy_sum / self.attempt_count)


class CompletionRecord(BaseModel):
    """Stored outcome of a finished lesson."""

    completed: bool = True
    average_accuracy: int = Field(0, ge=0, le=100)
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SessionState(BaseModel):
    """Persisted root describing where the learner is and what they finished."""

    mode: SessionMode = "chat"
    active_lesson_id: Optional[str] = None
    current_activity_index: int = Field(0, ge=0)
    retries_on_current_prompt: int = Field(0, ge=0)
    lesson_stats: Optional[LessonStats] = None
    completions: Dict[str, CompletionRecord] = Field(default_factory=dict)
    message_count: int = Field(0, ge=0)

    def clear_lesson(self) -> None:
        """Drop every lesson field and return to chat mode."""
        self.mode = "chat"
        self.active_lesson_id = None
        self.current_activity_index = 0
        self.retries_on_current_prompt = 0
        self.lesson_stats = None
