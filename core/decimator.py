"""Peak-detect resampling of raw ADC batches for virtual low sample rates.

When the requested rate is below what the hardware can run at, the hardware is
oversampled and every `target_count` raw samples are folded into one vertical
min/max excursion (two display points). The fractional part of the window
length is carried between windows and between batches so non-integer ratios
keep the long-run emission rate exact.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from shared.models import ADC_FULL_SCALE, DecimationState

logger = logging.getLogger(__name__)


class Decimator:
    """Stateful converter from raw sample batches to display points."""

    def __init__(self, target_count: float = 1.0) -> None:
        self.state = DecimationState()
        self.state.reset(target_count)

    @property
    def target_count(self) -> float:
        return self.state.target_count

    @property
    def is_passthrough(self) -> bool:
        return self.state.target_count <= 1.0

    def reset(self, target_count: Optional[float] = None) -> None:
        """Drop any partial window; optionally switch to a new ratio."""
        self.state.reset(target_count)
        logger.debug("Decimator reset (target_count=%.4f)", self.state.target_count)

    def process(self, batch: Sequence[int] | np.ndarray) -> np.ndarray:
        """
        Convert one raw batch into display points.

        Passthrough mode returns the batch unchanged (as uint16). Accumulation
        mode returns an even-length array of (min, max) pairs, possibly empty
        when the batch did not complete a window.
        """
        samples = np.asarray(batch, dtype=np.uint16).reshape(-1)
        if self.is_passthrough:
            return samples.copy()

        state = self.state
        target = state.target_count
        acc_min = state.acc_min
        acc_max = state.acc_max
        progress = state.progress

        out = np.empty(samples.shape[0] * 2, dtype=np.uint16)
        idx = 0
        for val in samples.tolist():
            if val < acc_min:
                acc_min = val
            if val > acc_max:
                acc_max = val
            progress += 1.0
            if progress >= target:
                out[idx] = acc_min
                out[idx + 1] = acc_max
                idx += 2
                acc_min = ADC_FULL_SCALE
                acc_max = 0
                # Carry the fractional remainder into the next window.
                progress -= target

        state.acc_min = acc_min
        state.acc_max = acc_max
        state.progress = progress
        return out[:idx]


__all__ = ["Decimator"]
