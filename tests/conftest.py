"""Shared fixtures for engine, catalog and store tests."""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from lingoraft.engine import LessonEngine
from lingoraft.learning import LessonCatalog
from lingoraft.learning.lessons import parse_lesson
from lingoraft.storage import InMemorySessionStore

MINI_LESSON = {
    "id": "mini",
    "title": "Mini Lesson",
    "level": "beginner",
    "estimated_minutes": 2,
    "description": "Two prompts for tests.",
    "entry_activity": 0,
    "sections": [
        {
            "number": 1,
            "title": "Keys",
            "evaluation": {"normalize_spaces": True},
            "activities": [{"id": "a1", "target": "f j", "hint": "One space."}],
        },
        {
            "number": 2,
            "title": "Words",
            "evaluation": {"strict": True},
            "max_retries_before_suggest_skip": 2,
            "activities": [
                {"id": "a2", "target": "Hi.", "hint": "Capital H."},
                {"id": "voice", "type": "speech", "hidden": True},
            ],
        },
    ],
}


@pytest.fixture
def temp_dir():
    """Create a temporary directory for session files and lesson content."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mini_catalog():
    """Catalog holding only the two-prompt test lesson."""
    return LessonCatalog([parse_lesson(MINI_LESSON)])


@pytest.fixture
def bundled_catalog():
    """Catalog loaded from the lesson YAML shipped with the package."""
    return LessonCatalog.from_package()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def engine(mini_catalog, store):
    """Engine over the mini lesson with an in-memory store."""
    return LessonEngine(catalog=mini_catalog, session_store=store, default_lesson_id="mini")
