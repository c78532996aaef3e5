"""Round-number axis ticks shared by the time and voltage axes."""

from __future__ import annotations

import math
from typing import List

_END_EPSILON = 1e-5


def nice_number(value: float, round_to_nearest: bool) -> float:
    """
    Snap `value` to 1, 2, 5 or 10 times a power of ten.

    With `round_to_nearest` the closest bucket is picked (thresholds 1.5, 3, 7);
    otherwise the smallest bucket not below the value's leading fraction.
    """
    if not value > 0 or not math.isfinite(value):
        raise ValueError("value must be a positive finite number")

    exponent = math.floor(math.log10(value))
    fraction = value / 10.0 ** exponent
    if round_to_nearest:
        if fraction < 1.5:
            nice = 1.0
        elif fraction < 3.0:
            nice = 2.0
        elif fraction < 7.0:
            nice = 5.0
        else:
            nice = 10.0
    else:
        if fraction <= 1.0:
            nice = 1.0
        elif fraction <= 2.0:
            nice = 2.0
        elif fraction <= 5.0:
            nice = 5.0
        else:
            nice = 10.0
    return nice * 10.0 ** exponent


def nice_ticks(min_value: float, max_value: float, max_ticks: int) -> List[float]:
    """
    Ascending tick positions covering [min_value, max_value] on a round spacing.

    The first tick is at or below `min_value` and the last at or above
    `max_value`. Returns an empty list for non-finite bounds and a single tick
    for an empty range.
    """
    if not (math.isfinite(min_value) and math.isfinite(max_value)):
        return []
    if max_ticks < 2:
        raise ValueError("max_ticks must be at least 2")
    if max_value < min_value:
        min_value, max_value = max_value, min_value
    if max_value == min_value:
        return [float(min_value)]

    span = nice_number(max_value - min_value, False)
    spacing = nice_number(span / (max_ticks - 1), True)
    nice_min = math.floor(min_value / spacing) * spacing
    nice_max = math.ceil(max_value / spacing) * spacing

    # Trim float noise such as 0.30000000000000004 from the labels.
    decimals = max(0, -math.floor(math.log10(spacing)))
    ticks: List[float] = []
    i = 0
    while True:
        tick = nice_min + i * spacing
        if tick > nice_max + _END_EPSILON:
            break
        ticks.append(round(tick, decimals) + 0.0)
        i += 1
    return ticks


__all__ = ["nice_number", "nice_ticks"]
