"""ScopePipeline - the single owner of all streaming waveform state.

Batches flow in through `ingest()` / `ingest_frame()` (decimate, then push into
the ring buffer). Pointer, wheel and resize interactions are posted as
commands and applied in arrival order at the start of the next
`prepare_frame()`, so view changes become visible to the next draw only.
"""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from daq.frames import FrameDecodeError, decode_frame
from shared.models import BUFFER_CAPACITY, ReferencePoint, ScopeConfig
from shared.ring_buffer import SampleRingBuffer

from .decimator import Decimator
from .ticks import nice_ticks
from .trigger import find_trigger_index
from .view_transform import ViewTransform

logger = logging.getLogger(__name__)

DEFAULT_TICK_TARGET = 12


# ----------------------------
# View commands
# ----------------------------

@dataclass(frozen=True)
class ResizeCommand:
    width: float
    height: float


@dataclass(frozen=True)
class ZoomCommand:
    """One wheel step; negative `delta` zooms in (wheel rolled away from the user)."""

    delta: float
    x: float
    y: float


@dataclass(frozen=True)
class PanCommand:
    dx: float
    dy: float


@dataclass(frozen=True)
class PointerCommand:
    """Cursor moved to (x, y); both None when the cursor left the canvas."""

    x: Optional[float]
    y: Optional[float]


@dataclass(frozen=True)
class ClickCommand:
    x: float
    y: float


@dataclass(frozen=True)
class ResetViewCommand:
    pass


ViewCommand = Union[ResizeCommand, ZoomCommand, PanCommand, PointerCommand, ClickCommand, ResetViewCommand]


# ----------------------------
# Frame output
# ----------------------------

@dataclass(frozen=True)
class Readout:
    """Cursor position in domain units plus the delta to the reference point."""

    t_ms: float
    volts: float
    delta_t_ms: Optional[float] = None
    delta_volts: Optional[float] = None

    @property
    def frequency_hz(self) -> Optional[float]:
        if not self.delta_t_ms:
            return None
        return 1000.0 / self.delta_t_ms


@dataclass(frozen=True)
class FrameSnapshot:
    """Everything a renderer needs to draw one frame."""

    samples: np.ndarray = field(repr=False)
    trigger_index: int
    scale: float
    offset_x: float
    offset_y: float
    time_ticks: Tuple[float, ...]
    voltage_ticks: Tuple[float, ...]
    frozen: bool
    pointer: Optional[Tuple[float, float]] = None
    readout: Optional[Readout] = None
    reference: Optional[ReferencePoint] = None


class ScopePipeline:
    """
    Owns configuration, decimation state, the display buffer and the view.

    Every mutation goes through a method on this object. Batch ingestion and
    reconfiguration share one lock so a threaded transport never mixes samples
    from two configurations in one decimation window.
    """

    def __init__(
        self,
        config: Optional[ScopeConfig] = None,
        *,
        capacity: int = BUFFER_CAPACITY,
        tick_target: int = DEFAULT_TICK_TARGET,
    ) -> None:
        self._lock = threading.RLock()
        self._config = config if config is not None else ScopeConfig()
        self._capacity = int(capacity)
        self._tick_target = int(tick_target)

        self.decimator = Decimator(self._config.target_count)
        self.buffer = SampleRingBuffer(self._capacity)
        self.view = ViewTransform()
        self.view.configure(self._config, self._capacity)

        self._frozen = False
        self._reference: Optional[ReferencePoint] = None
        self._pointer: Optional[Tuple[float, float]] = None
        self._commands: "queue.SimpleQueue[ViewCommand]" = queue.SimpleQueue()

        # Diagnostics
        self.frames_malformed = 0
        self.batches_discarded = 0

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> ScopeConfig:
        return self._config

    def reconfigure(self, config: ScopeConfig) -> None:
        """Adopt `config` and restart decimation from an empty window."""
        with self._lock:
            self._config = config
            self.decimator.reset(config.target_count)
            self.view.configure(config, self._capacity)
        logger.info(
            "Reconfigured: desired=%d Hz hardware=%d Hz target_count=%.3f atten=%d",
            config.desired_rate,
            config.sample_rate,
            config.target_count,
            config.atten,
        )

    def set_trigger(self, level: int, invert: bool) -> None:
        """Change only the draw-time trigger; decimation keeps running."""
        with self._lock:
            self._config = replace(self._config, trigger=int(level), invert=bool(invert))

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, batch: Sequence[int] | np.ndarray) -> int:
        """Decimate `batch` into the display buffer; returns the points pushed."""
        with self._lock:
            if self._frozen:
                self.batches_discarded += 1
                return 0
            points = self.decimator.process(batch)
            if points.size:
                self.buffer.push(points)
            return int(points.size)

    def ingest_frame(self, payload: bytes) -> int:
        """Decode and ingest one binary frame. Malformed frames are logged and dropped."""
        try:
            samples = decode_frame(payload)
        except FrameDecodeError as exc:
            self.frames_malformed += 1
            logger.warning("Dropping malformed frame: %s", exc)
            return 0
        if samples.size == 0:
            return 0
        return self.ingest(samples)

    # ------------------------------------------------------------------
    # Freeze / measurement
    # ------------------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def reference(self) -> Optional[ReferencePoint]:
        return self._reference

    def set_frozen(self, frozen: bool) -> None:
        with self._lock:
            self._frozen = bool(frozen)
            if not self._frozen:
                self._reference = None

    def toggle_freeze(self) -> bool:
        self.set_frozen(not self._frozen)
        return self._frozen

    def measure(self, x: float, y: float) -> Readout:
        t_ms = float(self.view.x_to_time(x))
        volts = float(self.view.y_to_volts(y))
        ref = self._reference
        if not self._frozen or ref is None:
            return Readout(t_ms=t_ms, volts=volts)
        return Readout(
            t_ms=t_ms,
            volts=volts,
            delta_t_ms=abs(ref.t_ms - t_ms),
            delta_volts=abs(ref.volts - volts),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def post(self, command: ViewCommand) -> None:
        self._commands.put(command)

    def apply_pending(self) -> int:
        """Apply every queued command in FIFO order; returns how many ran."""
        applied = 0
        while True:
            try:
                command = self._commands.get_nowait()
            except queue.Empty:
                break
            self._apply(command)
            applied += 1
        return applied

    def _apply(self, command: ViewCommand) -> None:
        view = self.view
        if isinstance(command, ResizeCommand):
            view.resize(command.width, command.height)
        elif isinstance(command, ZoomCommand):
            view.zoom(command.delta, command.x, command.y)
        elif isinstance(command, PanCommand):
            view.pan(command.dx, command.dy)
        elif isinstance(command, PointerCommand):
            if command.x is None or command.y is None:
                self._pointer = None
            else:
                self._pointer = (float(command.x), float(command.y))
        elif isinstance(command, ClickCommand):
            if self.toggle_freeze():
                self._reference = ReferencePoint(
                    t_ms=float(view.x_to_time(command.x)),
                    volts=float(view.y_to_volts(command.y)),
                )
        elif isinstance(command, ResetViewCommand):
            view.reset()
        else:
            raise TypeError(f"Unknown view command: {command!r}")

    # ------------------------------------------------------------------
    # Frame preparation
    # ------------------------------------------------------------------

    def prepare_frame(self) -> FrameSnapshot:
        """Apply queued view commands and assemble the data for one draw."""
        self.apply_pending()
        with self._lock:
            data = self.buffer.snapshot()
            config = self._config
            frozen = self._frozen
            reference = self._reference

        view = self.view
        start = find_trigger_index(data, view.visible_points, config.trigger, config.invert)

        time_ticks: List[float] = []
        voltage_ticks: List[float] = []
        if view.width > 0 and view.ms_per_point > 0:
            time_ticks = nice_ticks(*view.visible_time_range(), self._tick_target)
        if view.height > 0:
            voltage_ticks = nice_ticks(*view.visible_voltage_range(), self._tick_target)

        pointer = self._pointer
        readout = self.measure(*pointer) if pointer is not None else None
        return FrameSnapshot(
            samples=data[start:],
            trigger_index=start,
            scale=view.scale,
            offset_x=view.offset_x,
            offset_y=view.offset_y,
            time_ticks=tuple(time_ticks),
            voltage_ticks=tuple(voltage_ticks),
            frozen=frozen,
            pointer=pointer,
            readout=readout,
            reference=reference if frozen else None,
        )


__all__ = [
    "ClickCommand",
    "FrameSnapshot",
    "PanCommand",
    "PointerCommand",
    "Readout",
    "ResetViewCommand",
    "ResizeCommand",
    "ScopePipeline",
    "ViewCommand",
    "ZoomCommand",
]
