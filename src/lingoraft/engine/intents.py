from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

RESET_SENTINEL = "__reset_session__"
LESSON_CONTROLS = {"retry", "skip"}

_START_TYPING_PHRASES = {"start typing", "start typing lesson", "typing lesson"}


@dataclass
class SlashCommand:
    command: str
    args: List[str] = field(default_factory=list)


def parse_slash_command(text: str) -> Optional[SlashCommand]:
    """Split `/word arg ...` into a lower-cased command word and its arguments."""
    if not text.startswith("/"):
        return None
    parts = re.split(r"\s+", text[1:].strip())
    command = parts[0].lower() if parts else ""
    return SlashCommand(command=command, args=[part for part in parts[1:] if part])


def detect_lesson_control(text: str) -> Optional[str]:
    lowered = text.strip().lower()
    return lowered if lowered in LESSON_CONTROLS else None


def is_start_typing_request(text: str) -> bool:
    return " ".join((text or "").split()).lower() in _START_TYPING_PHRASES


def is_capability_question(text: str) -> bool:
    return "what can you do" in (text or "").lower()
