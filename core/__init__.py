"""Core waveform pipeline: decimation, trigger search, view mapping and ticks."""

from .controller import ScopeController
from .decimator import Decimator
from .pipeline import FrameSnapshot, Readout, ScopePipeline
from .ticks import nice_number, nice_ticks
from .trigger import find_trigger_index, trigger_threshold
from .view_transform import ViewTransform, total_time_span_ms
from shared.models import DecimationState, ReferencePoint, ScopeConfig, ViewState

__all__ = [
    "DecimationState",
    "Decimator",
    "FrameSnapshot",
    "Readout",
    "ReferencePoint",
    "ScopeConfig",
    "ScopeController",
    "ScopePipeline",
    "ViewState",
    "ViewTransform",
    "find_trigger_index",
    "nice_number",
    "nice_ticks",
    "total_time_span_ms",
    "trigger_threshold",
]
