"""Tests for typed-attempt scoring, diff spans, tips and mistake flags."""

from __future__ import annotations

import os

import pytest

from lingoraft.learning import EvaluationOptions, SpeechActivity, evaluate_typing
from lingoraft.learning.evaluator import (
    CAPITALS_TIP,
    CHARACTERS_TIP,
    SPACES_TIP,
    compute_accuracy,
    find_diff_spans,
    normalize_spaces,
)

NORMALIZED = EvaluationOptions(normalize_spaces=True)
STRICT = EvaluationOptions(strict=True)


def test_capitalization_mistake():
    """A lower-case first letter is flagged as capitalization only."""
    result = evaluate_typing("Hello.", "hello.", STRICT)

    assert result.accepted is False
    assert result.accuracy == 83
    assert result.tip == CAPITALS_TIP
    assert "capital" in result.tip.lower()
    assert result.missing_text == 'Missing: "H"'
    assert result.extra_text == 'Extra: "h"'
    assert result.short_label == "Almost!"
    flags = result.mistake_flags
    assert flags.wrong_capitalization is True
    assert not (flags.missing_spaces or flags.extra_spaces or flags.other)


def test_missing_space_reported_as_word():
    result = evaluate_typing("asdf jkl;", "asdfjkl;", NORMALIZED)

    assert result.accepted is False
    assert result.accuracy == 44
    assert result.missing_text == "Missing: space"
    assert result.extra_text is None
    assert result.tip == SPACES_TIP
    assert result.mistake_flags.missing_spaces is True
    assert result.mistake_flags.other is False


def test_extra_space_reported_as_word():
    result = evaluate_typing("f j", "f  j")

    assert result.accepted is False
    assert result.extra_text == "Extra: space"
    assert result.missing_text is None
    assert result.mistake_flags.extra_spaces is True


def test_normalized_spaces_are_accepted():
    """Whitespace runs collapse before comparison but flags still read the raw text."""
    result = evaluate_typing("I am", "  I   am ", NORMALIZED)

    assert result.accepted is True
    assert result.accuracy == 100
    assert result.missing_text is None
    assert result.extra_text is None
    assert result.tip is None
    assert result.short_label == "Nice!"
    assert result.mistake_flags.extra_spaces is True


def test_without_normalization_whitespace_counts():
    result = evaluate_typing("I am", " I am")
    assert result.accepted is False


@pytest.mark.parametrize("text", ["", "Hello.", "a b  c", "Thank you. Goodbye."])
def test_identical_text_is_perfect(text):
    result = evaluate_typing(text, text, STRICT)

    assert result.accepted is True
    assert result.accuracy == 100
    assert result.missing_text is None
    assert result.extra_text is None
    assert result.tip is None
    assert result.mistake_flags.model_dump() == {
        "missing_spaces": False,
        "extra_spaces": False,
        "wrong_capitalization": False,
        "other": False,
    }


def test_none_attempt_is_treated_as_empty():
    result = evaluate_typing("abc", None)

    assert result.accepted is False
    assert result.accuracy == 0
    assert result.missing_text == 'Missing: "abc"'
    assert result.tip == CHARACTERS_TIP
    assert result.mistake_flags.other is True


def test_strict_option_keeps_generic_tip():
    assert evaluate_typing("cat", "cot", STRICT).tip == CHARACTERS_TIP
    assert evaluate_typing("cat", "cot").tip == CHARACTERS_TIP


def test_accuracy_is_positional():
    """A swap near the start misaligns only the swapped positions; an insertion shifts the rest."""
    assert compute_accuracy("abcd", "bacd") == 50
    assert compute_accuracy("abcd", "xabcd") == 0
    assert compute_accuracy("", "") == 100


def test_accuracy_rounds_half_up():
    # 1 of 8 positions match: 12.5%
    assert compute_accuracy("abcdefgh", "a") == 13


def test_accuracy_bounds():
    pairs = [("", "abc"), ("abc", ""), ("hello", "help me"), ("x" * 40, "y")]
    for target, attempt in pairs:
        assert 0 <= compute_accuracy(target, attempt) <= 100


@pytest.mark.parametrize(
    "target,attempt",
    [
        ("Hello.", "hello."),
        ("asdf jkl;", "asdfjkl;"),
        ("aa", "a"),
        ("a", "aa"),
        ("abc", "xyz"),
        ("same", "same"),
        ("", "new"),
        ("My name is Ana.", "My nam is Anna."),
    ],
)
def test_diff_spans_rebuild_both_strings(target, attempt):
    missing, extra = find_diff_spans(target, attempt)
    start = len(os.path.commonprefix([target, attempt]))
    prefix = target[:start]
    suffix_length = len(target) - start - len(missing)
    suffix = target[len(target) - suffix_length:] if suffix_length else ""

    assert target == prefix + missing + suffix
    assert attempt == prefix + extra + suffix


def test_mistake_flags_are_exclusive_for_distinct_strings():
    pairs = [
        ("a b", "ab"),
        ("ab", "a b"),
        ("Ab", "ab"),
        ("ab", "ac"),
        ("A b", "ab"),
    ]
    for target, attempt in pairs:
        flags = evaluate_typing(target, attempt).mistake_flags
        raised = [name for name, value in flags.model_dump().items() if value]
        assert raised, (target, attempt)
        assert not (flags.missing_spaces and flags.extra_spaces)
        if flags.other:
            assert raised == ["other"]


def test_normalize_spaces_helper():
    assert normalize_spaces("  a \t b\n c ") == "a b c"
    assert normalize_spaces(None) == ""


def test_speech_activity_always_rejects():
    result = SpeechActivity(id="speech_stub").evaluate("anything")

    assert result.accepted is False
    assert result.accuracy == 0
    assert result.tip == "Speech is not implemented yet."
    assert result.missing_text is None
    assert result.extra_text is None
