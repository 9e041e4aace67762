"""
LingoRaft typing tutor.

A chat-style tutor that walks a learner through scripted typing lessons,
scores each attempt, and keeps per-lesson progress in a small session file.
"""

from .config.loader import load_settings
from .engine import LessonEngine
from .system import LingoRaftSystem

__all__ = ["LessonEngine", "LingoRaftSystem", "load_settings"]
