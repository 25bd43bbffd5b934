"""Chunk boundaries — deterministic "typing" cut points for transcript text.

The reasoning view reveals an LLM's response a few characters at a time so
it reads like a live stream. The cut points are derived purely from the
text: the pseudo-random source is seeded from the text length, so the same
text always yields the same boundaries, whether it is shown for the first
time, replayed, or resumed after a pause.

Boundaries prefer to land just after a natural break (space, period,
comma, newline, colon) found within a short look-ahead window.
"""

from __future__ import annotations

import logging
from functools import lru_cache

logger = logging.getLogger(__name__)

MIN_CHUNK = 3
CHUNK_SPREAD = 8          # base chunk is MIN_CHUNK .. MIN_CHUNK + CHUNK_SPREAD - 1
BURST_PROBABILITY = 0.2
MIN_BURST = 5
BURST_SPREAD = 10         # burst adds MIN_BURST .. MIN_BURST + BURST_SPREAD - 1
LOOKAHEAD = 5
BREAK_CHARS = frozenset(" .,\n:")

_LCG_MULTIPLIER = 1103515245
_LCG_INCREMENT = 12345
_LCG_MASK = 0x7FFFFFFF
_SEED_FACTOR = 31


class _TypingRng:
    """Linear congruential generator seeded from the text length.

    Not a quality source of randomness; it only has to be cheap and
    reproducible.
    """

    def __init__(self, text_length: int):
        self._state = text_length * _SEED_FACTOR

    def random(self) -> float:
        self._state = (self._state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _LCG_MASK
        return self._state / _LCG_MASK


def _snap_to_break(text: str, pos: int) -> int:
    """Move *pos* to just after the first break within the look-ahead window."""
    end = len(text)
    for i in range(pos, min(pos + LOOKAHEAD, end) + 1):
        if i >= end or text[i] in BREAK_CHARS:
            return min(i + 1, end)
    return pos


def _compute_boundaries(text: str) -> tuple[int, ...]:
    rng = _TypingRng(len(text))
    boundaries = [0]
    pos = 0
    end = len(text)

    while pos < end:
        chunk = int(rng.random() * CHUNK_SPREAD) + MIN_CHUNK
        if rng.random() < BURST_PROBABILITY:
            chunk += int(rng.random() * BURST_SPREAD) + MIN_BURST

        pos = _snap_to_break(text, min(pos + chunk, end))
        boundaries.append(pos)

    return tuple(boundaries)


@lru_cache(maxsize=512)
def _cached_boundaries(text: str) -> tuple[int, ...]:
    logger.debug("Computing chunk boundaries for %d chars", len(text))
    return _compute_boundaries(text)


def generate_chunk_boundaries(text: str | None) -> tuple[int, ...]:
    """Return the reveal offsets for *text*.

    The result starts at 0, ends at ``len(text)`` and is strictly
    increasing. Empty or missing text yields ``(0,)``.
    """
    if not text:
        return (0,)
    return _cached_boundaries(text)


def boundary_count(text: str | None) -> int:
    """Number of entries in the boundary table for *text*.

    This is also the number of typing ticks the text takes to reveal.
    """
    return len(generate_chunk_boundaries(text))


def revealed_text(text: str | None, reveal_index: int) -> str:
    """Text visible at *reveal_index*.

    Index 0 shows nothing; index ``k >= 1`` shows the text up to boundary
    ``k - 1``, clamped to the full text.
    """
    if not text or reveal_index <= 0:
        return ""
    boundaries = generate_chunk_boundaries(text)
    return text[: boundaries[min(reveal_index - 1, len(boundaries) - 1)]]


def is_fully_revealed(text: str | None, reveal_index: int) -> bool:
    return reveal_index >= boundary_count(text)


def clear_cache() -> None:
    _cached_boundaries.cache_clear()
