# chatcore/tests/test_sanitizer.py
import json

import pytest

from chatcore.sanitizer import (
    ThinkingStreamFilter,
    extract_json_payload,
    sanitize_response_text,
    strip_thinking_tokens,
)


# ─── strip_thinking_tokens ─────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Before <think>internal reasoning here</think> After", "Before  After"),
        ("<think>first</think> middle <think>second</think> end", "middle  end"),
        ("Start <think> incomplete tag content", "Start  incomplete tag content"),
        ("<think>only thinking content</think>", ""),
        ("  <think>\nmulti\nline\n</think>\n  ", ""),
        ("<think>", ""),
        ("</think>", ""),
        ("This is normal text without thinking tokens", "This is normal text without thinking tokens"),
        ("<think>Let me calculate 2+2</think>4", "4"),
        (
            "<think>How to explain this</think>Photosynthesis is the process by which plants convert sunlight into energy.",
            "Photosynthesis is the process by which plants convert sunlight into energy.",
        ),
        ("answer</think> trailing", "answer trailing"),
    ],
)
def test_strip_thinking_tokens(raw, expected):
    assert strip_thinking_tokens(raw) == expected


def test_two_blocks_back_to_back_is_still_empty():
    assert strip_thinking_tokens("<think>a</think><think>b</think>") == ""


def test_block_text_never_leaks():
    out = strip_thinking_tokens("<think>secret plan</think>The answer <think>more secret</think>is 7")
    assert "secret" not in out
    assert out == "The answer is 7"


# ─── extract_json_payload ──────────────────────────────────────────────────────

def test_extract_json_after_thinking():
    out = extract_json_payload('<think>Let me format this as JSON</think>{"answer": "42"}')
    assert out == '{"answer": "42"}'
    assert json.loads(out) == {"answer": "42"}


def test_extract_json_from_fenced_block_with_prose():
    raw = 'Sure! Here is the result:\n```json\n{"items": [1, 2, 3]}\n```\nLet me know if you need more.'
    out = extract_json_payload(raw)
    assert json.loads(out) == {"items": [1, 2, 3]}


def test_extract_json_from_bare_fence_array():
    raw = "```\n[{\"a\": 1}, {\"b\": 2}]\n```"
    assert json.loads(extract_json_payload(raw)) == [{"a": 1}, {"b": 2}]


def test_extract_json_without_brackets_returns_cleaned_text():
    assert extract_json_payload("<think>hmm</think>  no json here  ") == "no json here"


def test_sanitize_response_text_modes():
    raw = '<think>x</think>Result: {"ok": true}'
    assert sanitize_response_text(raw) == 'Result: {"ok": true}'
    assert sanitize_response_text(raw, json_mode=True) == '{"ok": true}'


# ─── ThinkingStreamFilter ──────────────────────────────────────────────────────

def _run_filter(chunks):
    f = ThinkingStreamFilter()
    released = [f.feed(c) for c in chunks]
    released.append(f.finish())
    return released


@pytest.mark.parametrize(
    "raw",
    [
        "<think>Let me think about this</think>The answer is 42",
        "Before <think>internal reasoning here</think> After",
        "<think>first</think> middle <think>second</think> end",
        "Start <think> incomplete tag content",
        "<think>only thinking content</think>",
        "plain text, no markup at all",
        "ends with a partial marker <thi",
        "stray close </think> in the middle",
        "<think>a<think>b",
    ],
)
def test_stream_filter_matches_batch_strip_for_every_split(raw):
    expected = strip_thinking_tokens(raw)
    for cut in range(len(raw) + 1):
        assert "".join(_run_filter([raw[:cut], raw[cut:]])) == expected, cut


def test_stream_filter_char_by_char():
    raw = "<think>plan</think>  Hello <think>x</think>world  "
    assert "".join(_run_filter(list(raw))) == strip_thinking_tokens(raw)


def test_stream_filter_withholds_open_block():
    f = ThinkingStreamFilter()
    assert f.feed("Hi <thi") == "Hi"
    assert f.feed("nk>secret") == ""
    assert f.in_block
    assert f.feed(" still secret</th") == ""
    assert f.feed("ink> there") == "  there"
    assert not f.in_block
    assert f.finish() == ""
