"""Tests for lesson content loading and the lesson catalog."""

from __future__ import annotations

import copy

import pytest
import yaml

from lingoraft.learning import LessonCatalog, SpeechActivity, TypingActivity
from lingoraft.learning.lessons import parse_lesson

from conftest import MINI_LESSON


def test_bundled_lesson_shape(bundled_catalog):
    lesson = bundled_catalog.get("typing_beginner_20min")
    assert lesson is not None
    assert lesson.estimated_minutes == 20
    assert [section.number for section in lesson.sections] == [1, 2, 3, 4, 5]

    activities = lesson.build_activities()
    assert len(activities) == 23
    assert all(isinstance(activity, TypingActivity) for activity in activities)
    assert [activity.prompt_number for activity in activities] == list(range(1, 24))
    assert {activity.total_prompts for activity in activities} == {23}
    assert activities[0].target == "asdf jkl;"
    assert activities[-1].target == "Thank you. Goodbye."


def test_bundled_lesson_section_defaults(bundled_catalog):
    activities = bundled_catalog.get("typing_beginner_20min").build_activities()
    by_id = {activity.id: activity for activity in activities}

    assert by_id["p1"].evaluation.normalize_spaces is True
    assert by_id["p12"].evaluation.strict is True
    assert by_id["p12"].max_retries_before_suggest_skip == 2
    assert by_id["p17"].max_retries_before_suggest_skip == 2
    assert by_id["p18"].max_retries_before_suggest_skip is None
    assert "speech_stub" not in by_id


def test_build_activities_returns_same_sequence(mini_catalog):
    lesson = mini_catalog.get("mini")
    assert lesson.build_activities() is lesson.build_activities()
    assert lesson.typing_prompt_count == 2


def test_catalog_lookup(mini_catalog):
    assert [lesson.id for lesson in mini_catalog.list()] == ["mini"]
    assert mini_catalog.get("nope") is None
    assert mini_catalog.get(None) is None
    assert len(mini_catalog) == 1


def test_duplicate_lesson_ids_rejected():
    lesson = parse_lesson(MINI_LESSON)
    with pytest.raises(ValueError, match="Duplicate lesson id"):
        LessonCatalog([lesson, lesson])


def test_missing_required_field_rejected():
    raw = copy.deepcopy(MINI_LESSON)
    del raw["title"]
    with pytest.raises(ValueError, match="Invalid lesson file"):
        parse_lesson(raw)


def test_visible_speech_activity_rejected():
    raw = copy.deepcopy(MINI_LESSON)
    raw["sections"][1]["activities"].append({"id": "talk", "type": "speech", "hidden": False})
    with pytest.raises(ValueError, match="must be hidden"):
        parse_lesson(raw)


def test_hidden_typing_activity_skipped_in_numbering():
    raw = copy.deepcopy(MINI_LESSON)
    raw["sections"][0]["activities"].insert(0, {"id": "draft", "target": "zzz", "hidden": True})
    activities = parse_lesson(raw).build_activities()

    assert [activity.id for activity in activities] == ["a1", "a2"]
    assert [activity.prompt_number for activity in activities] == [1, 2]
    assert not any(isinstance(activity, SpeechActivity) for activity in activities)
    assert "hidden" not in TypingActivity.model_fields
    assert "hidden" not in SpeechActivity.model_fields


def test_from_directory_orders_lessons(temp_dir):
    second = copy.deepcopy(MINI_LESSON)
    second.update({"id": "second", "title": "Second", "order": 2})
    first = copy.deepcopy(MINI_LESSON)
    first.update({"id": "first", "title": "First", "order": 1})
    (temp_dir / "a_second.yaml").write_text(yaml.safe_dump(second), encoding="utf-8")
    (temp_dir / "b_first.yaml").write_text(yaml.safe_dump(first), encoding="utf-8")
    (temp_dir / "notes.txt").write_text("ignored", encoding="utf-8")

    catalog = LessonCatalog.from_directory(temp_dir)

    assert [lesson.id for lesson in catalog.list()] == ["first", "second"]


def test_from_directory_rejects_non_mapping(temp_dir):
    (temp_dir / "broken.yaml").write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must contain a mapping"):
        LessonCatalog.from_directory(temp_dir)
