from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from lingoraft.data_models import LessonStats
from lingoraft.learning.evaluator import (
    EvaluationOptions,
    EvaluationResult,
    MistakeFlags,
    evaluate_typing,
)

SPEECH_NOT_IMPLEMENTED = "Speech is not implemented yet."


@dataclass
class RuntimeContext:
    """Session details handed to an activity alongside the attempt."""

    retries_on_current_prompt: int = 0
    lesson_stats: Optional[LessonStats] = None


class TypingActivity(BaseModel):
    """Type the target text exactly."""

    model_config = ConfigDict(frozen=True)

    type: Literal["typing"] = "typing"
    id: str
    section_number: int = Field(ge=1)
    section_title: str
    prompt_number: int = Field(ge=1)
    total_prompts: int = Field(ge=1)
    target: str = Field(min_length=1)
    hint: str = ""
    evaluation: EvaluationOptions = Field(default_factory=EvaluationOptions)
    max_retries_before_suggest_skip: Optional[int] = Field(default=None, ge=1)

    def evaluate(self, attempt: Optional[str], runtime: Optional[RuntimeContext] = None) -> EvaluationResult:
        return evaluate_typing(self.target, attempt, self.evaluation)


class SpeechActivity(BaseModel):
    """Placeholder for spoken drills; every attempt is rejected."""

    model_config = ConfigDict(frozen=True)

    type: Literal["speech"] = "speech"
    id: str

    def evaluate(self, attempt: Optional[str] = None, runtime: Optional[RuntimeContext] = None) -> EvaluationResult:
        return EvaluationResult(
            accepted=False,
            accuracy=0,
            tip=SPEECH_NOT_IMPLEMENTED,
            short_label="Speech activity placeholder",
            mistake_flags=MistakeFlags(),
        )


Activity = Annotated[Union[TypingActivity, SpeechActivity], Field(discriminator="type")]
