"""
Shared data structures available to both the pipeline core and the GUI.
"""

from .models import DecimationState, ReferencePoint, ScopeConfig, ViewState
from .ring_buffer import SampleRingBuffer

__all__ = ["DecimationState", "ReferencePoint", "SampleRingBuffer", "ScopeConfig", "ViewState"]
