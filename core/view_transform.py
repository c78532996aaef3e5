"""Mapping between buffer space, the time/voltage domain and canvas pixels.

Screen coordinates follow the widget convention: x grows to the right, y grows
downward, so higher voltages sit closer to the top. At scale 1.0 one buffer
point occupies one pixel column, so the time visible across the canvas is
``width * ms_per_point``. Zoom and pan are a single uniform scale plus an
offset applied after the unzoomed domain-to-pixel mapping:

    screen_x = (t / total_time_ms * width) * scale + offset_x
    screen_y = (height * (1 - v / max_voltage)) * scale + offset_y
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from shared.models import (
    ADC_FULL_SCALE,
    BUFFER_CAPACITY,
    DEFAULT_MAX_VOLTAGE,
    MAX_ZOOM,
    ZOOM_SNAP,
    ZOOM_STEP,
    ScopeConfig,
    ViewState,
)


def total_time_span_ms(config: ScopeConfig, capacity: int = BUFFER_CAPACITY) -> float:
    """Time covered by a full display buffer, in milliseconds.

    When decimating, every `target_count` hardware samples become two points,
    so the buffer holds `capacity / (2 * target_count)` points' worth of time at
    an effective rate of `desired_rate / target_count`.
    """
    if config.is_decimated:
        target = config.target_count
        effective_rate = config.desired_rate / target
        effective_points = capacity / (target * 2.0)
    else:
        effective_rate = float(config.desired_rate)
        effective_points = float(capacity)
    return effective_points / effective_rate * 1000.0


class ViewTransform:
    """Owns the `ViewState` and converts between domain and screen space."""

    def __init__(
        self,
        width: float = 0.0,
        height: float = 0.0,
        *,
        ms_per_point: float = 0.0,
        max_voltage: float = DEFAULT_MAX_VOLTAGE,
        state: Optional[ViewState] = None,
    ) -> None:
        self.state = state if state is not None else ViewState()
        self.width = float(width)
        self.height = float(height)
        self.ms_per_point = float(ms_per_point)
        self.max_voltage = float(max_voltage)

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    @property
    def scale(self) -> float:
        return self.state.scale

    @property
    def offset_x(self) -> float:
        return self.state.offset_x

    @property
    def offset_y(self) -> float:
        return self.state.offset_y

    @property
    def visible_points(self) -> int:
        """Buffer points spanning the canvas width at scale 1.0."""
        return int(self.width)

    @property
    def total_time_ms(self) -> float:
        """Time spanned by the canvas width at scale 1.0."""
        return self.width * self.ms_per_point

    def resize(self, width: float, height: float) -> None:
        self.width = max(0.0, float(width))
        self.height = max(0.0, float(height))

    def configure(self, config: ScopeConfig, capacity: int = BUFFER_CAPACITY) -> None:
        """Adopt the point spacing and full-scale voltage of `config`."""
        self.ms_per_point = total_time_span_ms(config, capacity) / capacity
        self.max_voltage = config.max_voltage

    # ------------------------------------------------------------------
    # Domain <-> screen
    # ------------------------------------------------------------------

    def time_to_x(self, t_ms):
        total = self.total_time_ms
        if total == 0:
            return 0.0
        base = (t_ms / total) * self.width
        return base * self.state.scale + self.state.offset_x

    def x_to_time(self, px):
        if self.width == 0:
            return 0.0
        return ((px - self.state.offset_x) / self.state.scale) * (self.total_time_ms / self.width)

    def volts_to_y(self, volts):
        base = self.height * (1.0 - volts / self.max_voltage)
        return base * self.state.scale + self.state.offset_y

    def y_to_volts(self, py):
        if self.height == 0:
            return 0.0
        base = (py - self.state.offset_y) / self.state.scale
        return self.max_voltage * (1.0 - base / self.height)

    # ------------------------------------------------------------------
    # Buffer space
    # ------------------------------------------------------------------

    def index_to_time(self, index):
        """Time of point `index`, counted from the first drawn point."""
        return index * self.ms_per_point

    def raw_to_volts(self, raw):
        return raw / ADC_FULL_SCALE * self.max_voltage

    def sample_to_screen(self, raw: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Screen coordinates for a run of raw samples, the first at time zero."""
        values = np.asarray(raw, dtype=np.float64).reshape(-1)
        indices = np.arange(values.shape[0], dtype=np.float64)
        xs = self.time_to_x(self.index_to_time(indices))
        ys = self.volts_to_y(self.raw_to_volts(values))
        return (
            np.broadcast_to(np.asarray(xs, dtype=np.float64), values.shape),
            np.broadcast_to(np.asarray(ys, dtype=np.float64), values.shape),
        )

    def visible_time_range(self) -> Tuple[float, float]:
        return self.x_to_time(0.0), self.x_to_time(self.width)

    def visible_voltage_range(self) -> Tuple[float, float]:
        """(bottom, top) voltages currently on screen."""
        return self.y_to_volts(self.height), self.y_to_volts(0.0)

    # ------------------------------------------------------------------
    # Interaction
    # ------------------------------------------------------------------

    def zoom(self, delta: float, cursor_x: float, cursor_y: float) -> bool:
        """
        Apply one wheel step around the cursor. Negative `delta` zooms in.

        Returns False when the step was rejected (past the maximum zoom or a
        zero delta). A zero delta leaves the view alone rather than zooming
        out; the canvas drops zero wheel steps before they get here.
        """
        if delta == 0:
            return False
        factor = ZOOM_STEP if delta < 0 else 1.0 / ZOOM_STEP
        state = self.state
        new_scale = state.scale * factor

        if new_scale < ZOOM_SNAP:
            state.reset()
            return True
        if new_scale > MAX_ZOOM:
            return False

        state.offset_x = cursor_x - (cursor_x - state.offset_x) * factor
        state.offset_y = cursor_y - (cursor_y - state.offset_y) * factor
        state.scale = new_scale
        return True

    def pan(self, dx: float, dy: float) -> bool:
        """Shift the zoomed view; a no-op at scale 1.0."""
        if self.state.scale == 1.0:
            return False
        self.state.offset_x += dx
        self.state.offset_y += dy
        return True

    def reset(self) -> None:
        self.state.reset()


__all__ = ["ViewTransform", "total_time_span_ms"]
