from .activities import Activity, RuntimeContext, SpeechActivity, TypingActivity
from .evaluator import EvaluationOptions, EvaluationResult, MistakeFlags, evaluate_typing
from .lessons import LessonCatalog, LessonDefinition, Section

__all__ = [
    "Activity",
    "EvaluationOptions",
    "EvaluationResult",
    "LessonCatalog",
    "LessonDefinition",
    "MistakeFlags",
    "RuntimeContext",
    "Section",
    "SpeechActivity",
    "TypingActivity",
    "evaluate_typing",
]
