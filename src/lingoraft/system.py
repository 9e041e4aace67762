from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from lingoraft.config import Settings, load_settings
from lingoraft.engine import LessonEngine
from lingoraft.learning import LessonCatalog
from lingoraft.storage import JsonFileSessionStore, SessionStore
from lingoraft.utils.logging import configure_logging

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "LINGORAFT_CONFIG"
SESSION_FILE_ENV = "LINGORAFT_SESSION_FILE"


def path_from_env(name: str) -> Optional[Path]:
    """Return the path stored in environment variable `name`, if set."""
    value = os.environ.get(name)
    return Path(value) if value else None


class LingoRaftSystem:
    """
    Facade wiring settings, lesson content, session storage and the engine.

    Shells (CLI, HTTP) build one of these and talk to `engine`; tests usually
    pass an explicit catalog and an in-memory store instead of touching disk.

    Attributes
    ----------
    settings : Settings
        Validated configuration, typically from config/default.yaml.
    catalog : LessonCatalog
        Lessons loaded from `settings.lessons.content_package`.
    session_store : SessionStore
        Persistence port; a JSON file at `settings.session.path` by default.
    engine : LessonEngine
        The session state machine restored from `session_store`.
    """

    def __init__(
        self,
        settings: Settings,
        catalog: Optional[LessonCatalog] = None,
        session_store: Optional[SessionStore] = None,
    ):
        self.settings = settings
        configure_logging(settings.logging.level, settings.logging.json_output)

        self.catalog = catalog or LessonCatalog.from_package(settings.lessons.content_package)
        if self.catalog.get(settings.lessons.default_lesson_id) is None:
            logger.warning(
                "Default lesson %s is not in the catalog", settings.lessons.default_lesson_id
            )
        self.session_store = session_store or JsonFileSessionStore(
            settings.session.path, storage_key=settings.session.storage_key
        )
        self.engine = LessonEngine(
            catalog=self.catalog,
            session_store=self.session_store,
            default_lesson_id=settings.lessons.default_lesson_id,
        )
        logger.info("LingoRaft ready with %d lesson(s)", len(self.catalog))

    @classmethod
    def from_config(
        cls,
        config_path: Optional[Path] = None,
        session_path: Optional[Path] = None,
    ) -> "LingoRaftSystem":
        """Load settings (optionally overriding the session file) and build the system."""
        settings = load_settings(config_path)
        if session_path is not None:
            settings = settings.model_copy(
                update={"session": settings.session.model_copy(update={"path": session_path})}
            )
        return cls(settings)

    @classmethod
    def from_env(cls) -> "LingoRaftSystem":
        """Build the system from `LINGORAFT_CONFIG` and `LINGORAFT_SESSION_FILE`, as set by `lingoraft serve`."""
        return cls.from_config(path_from_env(CONFIG_PATH_ENV), session_path=path_from_env(SESSION_FILE_ENV))
