from .intents import RESET_SENTINEL
from .lesson_engine import DEFAULT_LESSON_ID, LessonEngine

__all__ = ["DEFAULT_LESSON_ID", "LessonEngine", "RESET_SENTINEL"]
