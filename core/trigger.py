"""Edge trigger search used to stabilise each drawn frame."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from shared.models import ADC_FULL_SCALE


def trigger_threshold(trigger_level: int) -> int:
    """Raw-sample threshold for a level given as distance from the top of the scale."""
    return ADC_FULL_SCALE - int(trigger_level)


def find_trigger_index(
    buffer: Sequence[int] | np.ndarray,
    visible_width: int,
    trigger_level: int,
    invert: bool = False,
) -> int:
    """
    Return the index the frame should start drawing from.

    Searches backward from the last index that still leaves `visible_width`
    points to draw for the most recent pair where ``buffer[i]`` and
    ``buffer[i + 1]`` straddle the threshold (high then low for the default
    edge, low then high when `invert` is set). When the window covers the whole
    buffer the search starts at the last complete pair instead. If no crossing
    exists the un-triggered window start is returned.
    """
    visible_width = int(visible_width)
    if visible_width < 0:
        raise ValueError("visible_width must be non-negative")

    data = np.asarray(buffer, dtype=np.int32).reshape(-1)
    n = data.shape[0]
    fallback = min(max(0, n - visible_width), n)

    start = n - visible_width
    if start <= 0:
        start = n - 2
    start = min(start, n - 2)
    if start < 0:
        return fallback

    threshold = trigger_threshold(trigger_level)
    head = data[: start + 1]
    tail = data[1 : start + 2]
    if invert:
        crossings = (head < threshold) & (tail > threshold)
    else:
        crossings = (head > threshold) & (tail < threshold)

    hits = np.flatnonzero(crossings)
    if hits.size == 0:
        return fallback
    return int(hits[-1])


__all__ = ["find_trigger_index", "trigger_threshold"]
