"""Lesson definitions and the read-only catalog the engine looks lessons up in."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from lingoraft.learning.activities import Activity, SpeechActivity, TypingActivity
from lingoraft.learning.evaluator import EvaluationOptions

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_PACKAGE = "lingoraft.lessons"
LESSON_SUFFIXES = (".yaml", ".yml")


class ActivitySpec(BaseModel):
    """One activity entry as written in a lesson file."""

    type: str = "typing"
    id: str
    target: Optional[str] = None
    hint: str = ""
    evaluation: Optional[EvaluationOptions] = None
    max_retries_before_suggest_skip: Optional[int] = Field(default=None, ge=1)
    hidden: bool = False

    @model_validator(mode="after")
    def check_kind(self) -> "ActivitySpec":
        if self.type not in {"typing", "speech"}:
            raise ValueError(f"unknown activity type '{self.type}'")
        if self.type == "typing" and not self.target:
            raise ValueError(f"typing activity '{self.id}' needs a target")
        if self.type == "speech" and not self.hidden:
            raise ValueError(f"speech activity '{self.id}' must be hidden until speech is supported")
        return self


class SectionSpec(BaseModel):
    number: int = Field(ge=1)
    title: str
    evaluation: EvaluationOptions = Field(default_factory=EvaluationOptions)
    max_retries_before_suggest_skip: Optional[int] = Field(default=None, ge=1)
    activities: List[ActivitySpec] = Field(default_factory=list)


class LessonSpec(BaseModel):
    """Raw lesson file contents; every field except `order` and `entry_activity` is required."""

    id: str = Field(min_length=1)
    title: str
    level: str
    estimated_minutes: int = Field(ge=1)
    description: str
    entry_activity: int = Field(0, ge=0)
    order: int = 0
    sections: List[SectionSpec] = Field(min_length=1)


@dataclass(frozen=True)
class Section:
    number: int
    title: str


@dataclass(frozen=True)
class LessonDefinition:
    """Immutable lesson metadata plus its pre-built activity sequence."""

    id: str
    title: str
    level: str
    estimated_minutes: int
    description: str
    entry_activity: int
    sections: Tuple[Section, ...]
    activities: Tuple[Activity, ...]

    def build_activities(self) -> Tuple[Activity, ...]:
        """Return the visible activity sequence; the same tuple on every call."""
        return self.activities

    @property
    def typing_prompt_count(self) -> int:
        return sum(1 for activity in self.activities if isinstance(activity, TypingActivity))


def build_lesson(spec: LessonSpec) -> LessonDefinition:
    """
    Flatten sections into the runtime activity sequence.

    Hidden activities are dropped, and prompt numbers and totals are assigned
    here so they always count the visible typing prompts in order.
    """
    visible = [
        (section, item)
        for section in spec.sections
        for item in section.activities
        if not item.hidden
    ]
    total_prompts = sum(1 for _, item in visible if item.type == "typing")

    activities: List[Activity] = []
    prompt_number = 0
    for section, item in visible:
        if item.type == "speech":
            activities.append(SpeechActivity(id=item.id))
            continue
        prompt_number += 1
        retries = item.max_retries_before_suggest_skip or section.max_retries_before_suggest_skip
        activities.append(
            TypingActivity(
                id=item.id,
                section_number=section.number,
                section_title=section.title,
                prompt_number=prompt_number,
                total_prompts=total_prompts,
                target=item.target or "",
                hint=item.hint,
                evaluation=item.evaluation or section.evaluation,
                max_retries_before_suggest_skip=retries,
            )
        )

    seen: set[str] = set()
    for activity in activities:
        if activity.id in seen:
            raise ValueError(f"Lesson '{spec.id}' has duplicate activity id: {activity.id}")
        seen.add(activity.id)

    return LessonDefinition(
        id=spec.id,
        title=spec.title,
        level=spec.level,
        estimated_minutes=spec.estimated_minutes,
        description=spec.description,
        entry_activity=spec.entry_activity,
        sections=tuple(Section(number=section.number, title=section.title) for section in spec.sections),
        activities=tuple(activities),
    )


def _validate_spec(raw: Any, source: str) -> LessonSpec:
    if not isinstance(raw, dict):
        raise ValueError(f"Lesson file must contain a mapping: {source}")
    try:
        return LessonSpec.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid lesson file {source}: {exc}") from exc


def parse_lesson(raw: Dict[str, Any], source: str = "<memory>") -> LessonDefinition:
    """Validate one raw lesson mapping and build its definition."""
    return build_lesson(_validate_spec(raw, source))


class LessonCatalog:
    """Ordered, read-only collection of lessons keyed by id."""

    def __init__(self, lessons: Iterable[LessonDefinition]):
        self._lessons: Tuple[LessonDefinition, ...] = tuple(lessons)
        self._by_id: Dict[str, LessonDefinition] = {}
        for lesson in self._lessons:
            if lesson.id in self._by_id:
                raise ValueError(f"Duplicate lesson id: {lesson.id}")
            self._by_id[lesson.id] = lesson

    def list(self) -> List[LessonDefinition]:
        return list(self._lessons)

    def get(self, lesson_id: Optional[str]) -> Optional[LessonDefinition]:
        if lesson_id is None:
            return None
        return self._by_id.get(lesson_id)

    def __len__(self) -> int:
        return len(self._lessons)

    @classmethod
    def from_package(cls, package: str = DEFAULT_CONTENT_PACKAGE) -> "LessonCatalog":
        """Load every lesson YAML bundled inside a package."""
        entries = sorted(
            (entry for entry in resources.files(package).iterdir() if entry.name.endswith(LESSON_SUFFIXES)),
            key=lambda entry: entry.name,
        )
        raw_lessons = [(yaml.safe_load(entry.read_text(encoding="utf-8")), entry.name) for entry in entries]
        return cls._from_raw(raw_lessons)

    @classmethod
    def from_directory(cls, directory: Path) -> "LessonCatalog":
        """Load lesson YAML files from a directory on disk."""
        paths = sorted(path for path in directory.iterdir() if path.suffix in LESSON_SUFFIXES)
        raw_lessons = [(yaml.safe_load(path.read_text(encoding="utf-8")), str(path)) for path in paths]
        return cls._from_raw(raw_lessons)

    @classmethod
    def _from_raw(cls, raw_lessons: Sequence[Tuple[Any, str]]) -> "LessonCatalog":
        specs = [_validate_spec(raw, source) for raw, source in raw_lessons]
        specs.sort(key=lambda spec: spec.order)
        parsed = [build_lesson(spec) for spec in specs]
        logger.info("Loaded %d lesson(s)", len(parsed))
        return cls(parsed)
