from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from lingoraft.utils.logging import get_logger

logger = get_logger(__name__)

STORAGE_KEY = "lingoraft_lr_session_v2"


class SessionStore(Protocol):
    """Persistence port for the serialized session. Implementations never raise."""

    def load(self) -> Optional[Dict[str, Any]]:
        """Return the stored session mapping, or None when nothing usable is stored."""

    def save(self, state: Dict[str, Any]) -> None:
        """Store the session mapping, dropping it silently on failure."""

    def clear(self) -> None:
        """Forget the stored session."""


class InMemorySessionStore:
    """Keeps a copy of the last saved session in memory."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._state: Optional[Dict[str, Any]] = copy.deepcopy(initial)
        self.save_count = 0

    def load(self) -> Optional[Dict[str, Any]]:
        """Return a copy of the last saved session."""
        return copy.deepcopy(self._state)

    def save(self, state: Dict[str, Any]) -> None:
        """Keep a private copy of the session and count the save."""
        self._state = copy.deepcopy(state)
        self.save_count += 1

    def clear(self) -> None:
        """Forget the saved session."""
        self._state = None


class JsonFileSessionStore:
    """
    Best-effort JSON file persistence for one learner session.

    The file holds a single object keyed by `storage_key`, so a store pointed at
    an unrelated or corrupt file behaves as if no session existed. Read and write
    failures are logged and dropped; callers keep working in memory.
    """

    def __init__(self, path: Path, storage_key: str = STORAGE_KEY):
        self.path = path
        self.storage_key = storage_key

    def load(self) -> Optional[Dict[str, Any]]:
        """Read the session under `storage_key`, or None if the file is missing, unreadable or foreign."""
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                document = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning("session_load_failed", path=str(self.path), error=str(exc))
            return None
        if not isinstance(document, dict):
            return None
        state = document.get(self.storage_key)
        return state if isinstance(state, dict) else None

    def save(self, state: Dict[str, Any]) -> None:
        """Write the session under `storage_key`, creating parent directories as needed."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as handle:
                json.dump({self.storage_key: state}, handle, indent=2)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("session_save_failed", path=str(self.path), error=str(exc))

    def clear(self) -> None:
        """Delete the session file if it exists."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("session_clear_failed", path=str(self.path), error=str(exc))
