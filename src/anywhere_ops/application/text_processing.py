"""Response post-processing: reasoning trace removal, math delimiters, whitespace.

The transforms are order-sensitive and idempotent: running
``process_llm_response`` on its own output returns it unchanged.
Escape sequences are deliberately left alone; JSON decoding already handled
them and unescaping would break ``\\[`` / ``\\(`` math delimiters.
"""

from __future__ import annotations

import re

_THINK_RE = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
_DISPLAY_MATH_RE = re.compile(r"\\\[([\s\S]*?)\\\]")
_INLINE_MATH_RE = re.compile(r"\\\(([\s\S]*?)\\\)")
_HSPACE_RE = re.compile(r"[^\S\n]+")
_BLANK_LINES_RE = re.compile(r"\n{3,}")
_ANY_SPACE_RE = re.compile(r"\s+")
_PUNCT_RE = re.compile(r"([.,:;!?])\s*")


def remove_thinking_tokens(text: str) -> str:
    # Repeat until stable: removing an inner block can join an outer one.
    while True:
        stripped = _THINK_RE.sub("", text)
        if stripped == text:
            return stripped
        text = stripped


def convert_math_delimiters(text: str) -> str:
    """``\\[..\\]`` -> ``$$..$$`` and ``\\(..\\)`` -> ``$..$`` (markdown math renderers only know dollars)."""
    # Nested same-type delimiters need more than one pass.
    while True:
        converted = _DISPLAY_MATH_RE.sub(lambda m: "$$" + m.group(1) + "$$", text)
        converted = _INLINE_MATH_RE.sub(lambda m: "$" + m.group(1) + "$", converted)
        if converted == text:
            return converted
        text = converted


def normalize_whitespace(text: str) -> str:
    text = _HSPACE_RE.sub(" ", text)
    return _BLANK_LINES_RE.sub("\n\n", text)


def process_llm_response(text: str) -> str:
    result = remove_thinking_tokens(text)
    result = convert_math_delimiters(result)
    result = normalize_whitespace(result)
    return result.strip()


def normalize_transcription(text: str) -> str:
    """Flatten a transcript to one line with a single space after punctuation."""
    result = _ANY_SPACE_RE.sub(" ", text)
    result = _PUNCT_RE.sub(lambda m: m.group(1) + " ", result)
    return result.strip()
