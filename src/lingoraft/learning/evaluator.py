"""Score a typed attempt against a target string.

Acceptance and accuracy use the *comparison* text (optionally whitespace
normalized). Diff spans, tips and mistake flags always look at the raw text so
the learner is told about the spaces they actually typed.
"""

from __future__ import annotations

import re
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from lingoraft.utils.rounding import round_half_up

_WHITESPACE_RUN = re.compile(r"\s+")

ACCEPTED_LABEL = "Nice!"
REJECTED_LABEL = "Almost!"

SPACES_TIP = "Tip: Slow down and watch spaces."
CAPITALS_TIP = "Tip: Check capital letters."
CHARACTERS_TIP = "Tip: Slow down and check each character."


class EvaluationOptions(BaseModel):
    """Per-activity switches controlling how attempts are compared."""

    model_config = ConfigDict(frozen=True)

    normalize_spaces: bool = False
    strict: bool = False


class MistakeFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    missing_spaces: bool = False
    extra_spaces: bool = False
    wrong_capitalization: bool = False
    other: bool = False


class EvaluationResult(BaseModel):
    """Outcome of one attempt."""

    model_config = ConfigDict(frozen=True)

    accepted: bool
    accuracy: int
    missing_text: Optional[str] = None
    extra_text: Optional[str] = None
    tip: Optional[str] = None
    short_label: str
    mistake_flags: MistakeFlags = Field(default_factory=MistakeFlags)


def normalize_spaces(text: Optional[str]) -> str:
    """Trim and collapse internal whitespace runs to a single space."""
    return _WHITESPACE_RUN.sub(" ", (text or "").strip())


def comparison_text(text: Optional[str], options: EvaluationOptions) -> str:
    if options.normalize_spaces:
        return normalize_spaces(text)
    return text or ""


def compute_accuracy(target: str, actual: str) -> int:
    """
    Percentage of positions where both strings hold the same character.

    Positions past the end of the shorter string never match. This is a
    position-wise score, not an edit distance: an early insertion shifts every
    later character out of alignment.
    """
    max_len = max(len(target), len(actual), 1)
    matches = 0
    for index in range(max_len):
        expected = target[index] if index < len(target) else ""
        typed = actual[index] if index < len(actual) else ""
        if expected == typed:
            matches += 1
    return round_half_up(matches / max_len * 100)


def find_diff_spans(target: str, actual: str) -> Tuple[str, str]:
    """
    Return the (missing, extra) middles left after removing the common prefix and suffix.

    The suffix scan never crosses the end of the common prefix, so
    `target == prefix + missing + suffix` and `actual == prefix + extra + suffix`.
    """
    if target == actual:
        return "", ""

    start = 0
    while start < len(target) and start < len(actual) and target[start] == actual[start]:
        start += 1

    target_end = len(target) - 1
    actual_end = len(actual) - 1
    while target_end >= start and actual_end >= start and target[target_end] == actual[actual_end]:
        target_end -= 1
        actual_end -= 1

    return target[start:target_end + 1], actual[start:actual_end + 1]


def summarize_span(label: str, span: str) -> Optional[str]:
    if not span:
        return None
    if span == " ":
        return f"{label}: space"
    return f'{label}: "{span}"'


def infer_tip(target: str, actual: str, options: EvaluationOptions) -> str:
    if target.count(" ") != actual.count(" "):
        return SPACES_TIP
    if target.lower() == actual.lower() and target != actual:
        return CAPITALS_TIP
    # strict lessons currently get the same wording
    if options.strict:
        return CHARACTERS_TIP
    return CHARACTERS_TIP


def detect_mistake_flags(target: str, actual: str) -> MistakeFlags:
    target_spaces = target.count(" ")
    actual_spaces = actual.count(" ")
    missing_spaces = actual_spaces < target_spaces
    extra_spaces = actual_spaces > target_spaces
    wrong_capitalization = target.lower() == actual.lower() and target != actual
    return MistakeFlags(
        missing_spaces=missing_spaces,
        extra_spaces=extra_spaces,
        wrong_capitalization=wrong_capitalization,
        other=target != actual and not (missing_spaces or extra_spaces or wrong_capitalization),
    )


def evaluate_typing(
    target: Optional[str],
    attempt: Optional[str],
    options: Optional[EvaluationOptions] = None,
) -> EvaluationResult:
    """Evaluate a typed attempt against its target."""
    options = options or EvaluationOptions()
    raw_target = target or ""
    raw_attempt = attempt or ""

    target_cmp = comparison_text(raw_target, options)
    attempt_cmp = comparison_text(raw_attempt, options)

    accepted = target_cmp == attempt_cmp
    accuracy = compute_accuracy(target_cmp, attempt_cmp)
    missing, extra = find_diff_spans(raw_target, raw_attempt)

    return EvaluationResult(
        accepted=accepted,
        accuracy=accuracy,
        missing_text=None if accepted else summarize_span("Missing", missing),
        extra_text=None if accepted else summarize_span("Extra", extra),
        tip=None if accepted else infer_tip(raw_target, raw_attempt, options),
        short_label=ACCEPTED_LABEL if accepted else REJECTED_LABEL,
        mistake_flags=detect_mistake_flags(raw_target, raw_attempt),
    )
