"""Cheap pre-flight prompt size estimate."""

from __future__ import annotations

import math

from anywhere_ops.config.constants import (
    MAX_ESTIMATED_TOKENS,
    TOKEN_CORRECTION_FACTOR,
    TOKENS_PER_WORD,
)
from anywhere_ops.domain import PromptTooLong


def estimate_tokens(text: str) -> int:
    """Estimate tokens as ``ceil(words * 1.33 * 1.20)``; blank text is 0."""
    words = len(text.split())
    if words == 0:
        return 0
    return math.ceil(words * TOKENS_PER_WORD * TOKEN_CORRECTION_FACTOR)


def validate_prompt_length(text: str, limit: int = MAX_ESTIMATED_TOKENS) -> int:
    """Return the estimate, or raise ``PromptTooLong`` when it exceeds *limit*."""
    estimated = estimate_tokens(text)
    if estimated > limit:
        raise PromptTooLong(estimated, limit)
    return estimated
