from .response import Action, FeedbackCard, LessonInfo, LessonListItem, PromptCard, Response
from .session import CompletionRecord, LessonStats, MistakeCounters, SessionState

__all__ = [
    "Action",
    "CompletionRecord",
    "FeedbackCard",
    "LessonInfo",
    "LessonListItem",
    "LessonStats",
    "MistakeCounters",
    "PromptCard",
    "Response",
    "SessionState",
]
