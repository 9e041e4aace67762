from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .session import SessionMode

ActionVariant = Literal["primary", "secondary"]
FeedbackStatus = Literal["success", "warning", "info"]


class Action(BaseModel):
    """Button the UI can show; `value` is sent back as the next message."""

    id: str
    label: str
    value: str
    variant: ActionVariant = "secondary"


class LessonInfo(BaseModel):
    """Header describing the prompt currently on screen."""

    lesson_id: str
    lesson_title: str
    section_number: int
    section_title: str
    total_sections: int
    prompt_number: int
    total_prompts: int
    average_accuracy: int
    completed_prompts: int


class PromptCard(BaseModel):
    title: str = "Type this:"
    target_text: str
    hint: str = ""


class FeedbackCard(BaseModel):
    status: FeedbackStatus
    lines: List[str] = Field(default_factory=list)


class LessonListItem(BaseModel):
    """One row of the lessons panel."""

    id: str
    title: str
    level: str
    estimated_minutes: int
    description: str
    completed: bool
    last_average_accuracy: Optional[int] = None
    start_action: Action


class Response(BaseModel):
    """Snapshot of everything a presentation shell needs to render the next state."""

    is_lesson_active: bool
    messages: List[str] = Field(default_factory=list)
    mode: SessionMode
    quick_actions: List[Action] = Field(default_factory=list)
    lesson_actions: List[Action] = Field(default_factory=list)
    current_lesson_info: Optional[LessonInfo] = None
    prompt_card: Optional[PromptCard] = None
    feedback_card: Optional[FeedbackCard] = None
    lessons: List[LessonListItem] = Field(default_factory=list)
    can_reset: bool = True
