# chatcore/sanitizer.py

"""
Response sanitizer for locally hosted models.

Open models served by Ollama (qwen3, deepseek-r1, ...) leak their internal
monologue into the visible answer as `<think>...</think>` blocks, and they
have no native structured-output mode, so JSON answers arrive wrapped in
prose or Markdown fences. This module cleans both up:

- `strip_thinking_tokens()`  → remove reasoning blocks and stray markers
- `extract_json_payload()`   → pull the JSON object/array out of a wrapped answer
- `sanitize_response_text()` → the pipeline adapters run on every answer
- `ThinkingStreamFilter`     → the same strip, applied chunk by chunk

All functions are pure and deterministic; no I/O happens here.
"""

import re
from typing import Tuple

THINK_OPEN = "<think>"
THINK_CLOSE = "</think>"

_BLOCK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)
_SOLE_BLOCK_RE = re.compile(r"<think>(?:(?!</think>).)*</think>", re.DOTALL)
_MARKER_RE = re.compile(r"</?think>")
_FENCE_RE = re.compile(r"```[\w+.-]*[ \t]*\n?")
_JSON_RE = re.compile(r"\{[\s\S]*\}|\[[\s\S]*\]")


def strip_thinking_tokens(text: str) -> str:
    """
    Remove `<think>` reasoning markup from a complete response.

    1. A response that is nothing but one reasoning block (or a lone marker)
       becomes the empty string.
    2. Every well-formed block is removed, non-greedily.
    3. Unmatched opening/closing markers left by truncated output are removed;
       the text around them is kept.
    4. Surrounding whitespace is trimmed.

    Text between and after blocks is kept in its original order, with its
    own spacing. `"<think>a</think> x <think>b</think> y"` → `"x  y"`.

    Args:
        text (str): Raw provider output.

    Returns:
        str: The visible answer, possibly empty.
    """
    trimmed = text.strip()
    if trimmed in (THINK_OPEN, THINK_CLOSE) or _SOLE_BLOCK_RE.fullmatch(trimmed):
        return ""

    cleaned = _BLOCK_RE.sub("", text)
    cleaned = _MARKER_RE.sub("", cleaned)
    return cleaned.strip()


def extract_json_payload(text: str) -> str:
    """
    Best-effort extraction of a JSON payload from a structured-output answer.

    Strips reasoning markup and Markdown code fences (bare or language-tagged),
    then returns the first `{...}` or `[...]` span, matched greedily across the
    remaining text. When no bracketed span exists the cleaned text is returned
    unchanged; this is not a validator, so callers still handle parse errors.
    """
    cleaned = strip_thinking_tokens(text)
    cleaned = _FENCE_RE.sub("", cleaned).strip()
    match = _JSON_RE.search(cleaned)
    return match.group(0) if match else cleaned


def sanitize_response_text(text: str, json_mode: bool = False) -> str:
    """
    Clean one complete answer the way every local-model adapter does.
    """
    if json_mode:
        return extract_json_payload(text)
    return strip_thinking_tokens(text)


def _partial_marker_len(text: str, markers: Tuple[str, ...]) -> int:
    """Length of the longest suffix of `text` that is a proper prefix of a marker."""
    longest = 0
    for marker in markers:
        for size in range(min(len(marker) - 1, len(text)), longest, -1):
            if text.endswith(marker[:size]):
                longest = size
                break
    return longest


class ThinkingStreamFilter:
    """
    Incremental version of `strip_thinking_tokens` for streamed answers.

    Reasoning markers can straddle chunk boundaries, so the filter holds back
    anything that might still turn out to be markup: the body of an open
    reasoning block, a trailing partial marker such as `"<thi"`, leading
    whitespace and trailing whitespace. Nothing is released while a block is
    open.

    Feeding any chunking of a text and then calling `finish()` releases, in
    total, exactly `strip_thinking_tokens(text)`.

    Example:
        f = ThinkingStreamFilter()
        f.feed("<thi") + f.feed("nk>plan</think> 4") + f.finish()   # → "4"
    """

    def __init__(self) -> None:
        self._pending = ""      # not yet classified
        self._block = ""        # body of the currently open block
        self._in_block = False
        self._started = False   # any visible text released yet
        self._trailing_ws = ""

    @property
    def in_block(self) -> bool:
        return self._in_block

    def feed(self, chunk: str) -> str:
        """
        Consume one chunk of raw text.

        Returns:
            str: Text that is now safe to show (may be empty).
        """
        self._pending += chunk
        visible = []

        while self._pending:
            if self._in_block:
                idx = self._pending.find(THINK_CLOSE)
                if idx == -1:
                    keep = _partial_marker_len(self._pending, (THINK_CLOSE,))
                    cut = len(self._pending) - keep
                    self._block += self._pending[:cut]
                    self._pending = self._pending[cut:]
                    break
                self._pending = self._pending[idx + len(THINK_CLOSE):]
                self._block = ""
                self._in_block = False
                continue

            open_idx = self._pending.find(THINK_OPEN)
            close_idx = self._pending.find(THINK_CLOSE)
            hits = [i for i in (open_idx, close_idx) if i != -1]
            if not hits:
                keep = _partial_marker_len(self._pending, (THINK_OPEN, THINK_CLOSE))
                cut = len(self._pending) - keep
                visible.append(self._pending[:cut])
                self._pending = self._pending[cut:]
                break

            idx = min(hits)
            visible.append(self._pending[:idx])
            if idx == open_idx:
                self._pending = self._pending[idx + len(THINK_OPEN):]
                self._in_block = True
            else:
                # stray closing marker
                self._pending = self._pending[idx + len(THINK_CLOSE):]

        return self._release("".join(visible))

    def finish(self) -> str:
        """
        Flush at end of stream.

        An unterminated block loses only its markers, like the batch strip
        does. Trailing whitespace is dropped.
        """
        tail = self._pending
        if self._in_block:
            # an open block never holds a closing marker, only nested openers
            tail = _MARKER_RE.sub("", self._block + tail)
        self._pending = ""
        self._block = ""
        self._in_block = False

        out = self._release(tail)
        self._trailing_ws = ""
        return out

    def _release(self, text: str) -> str:
        if not self._started:
            text = text.lstrip()
            if not text:
                return ""
            self._started = True
        text = self._trailing_ws + text
        body = text.rstrip()
        self._trailing_ws = text[len(body):]
        return body
