from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, field_validator

from lingoraft.utils.logging import resolve_level


class LessonsConfig(BaseModel):
    """Where lesson content lives and which lesson chat shortcuts start."""

    default_lesson_id: str = Field("typing_beginner_20min", description="Lesson used by /restart and chat intents.")
    content_package: str = Field("lingoraft.lessons", description="Package holding lesson YAML files.")


class SessionConfig(BaseModel):
    """Location and key of the persisted learner session."""

    path: Path = Field(Path("data/session.json"))
    storage_key: str = Field("lingoraft_lr_session_v2", min_length=1)


class LoggingConfig(BaseModel):
    """Controls for tutor logging output and format."""

    level: str = Field("INFO")
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def normalize_level(cls, value: str) -> str:
        """Accept lower-case level names from YAML and reject names logging does not know."""
        resolve_level(value)
        return value.upper()


class ApiConfig(BaseModel):
    """HTTP shell settings."""

    allow_origins: List[str] = Field(default_factory=lambda: ["*"])


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("LingoRaft")
    lessons: LessonsConfig = Field(default_factory=LessonsConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
