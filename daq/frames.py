"""Binary sample frames: raw little-endian uint16 values, no header."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from shared.models import ADC_MAX_VALUE

_WIRE_DTYPE = np.dtype("<u2")


class FrameDecodeError(ValueError):
    """Raised for payloads that are not a whole number of 12-bit samples."""


def decode_frame(payload: bytes | bytearray | memoryview) -> np.ndarray:
    """Decode one frame into a native-endian uint16 array (may be empty)."""
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise FrameDecodeError(f"expected a binary frame, got {type(payload).__name__}")
    raw = bytes(payload)
    if len(raw) % _WIRE_DTYPE.itemsize:
        raise FrameDecodeError(f"frame length {len(raw)} is not a multiple of 2 bytes")

    samples = np.frombuffer(raw, dtype=_WIRE_DTYPE).astype(np.uint16)
    if samples.size and int(samples.max()) > ADC_MAX_VALUE:
        raise FrameDecodeError(f"sample value {int(samples.max())} exceeds 12-bit range")
    return samples


def encode_frame(samples: Sequence[int] | np.ndarray) -> bytes:
    arr = np.asarray(samples)
    if arr.size and (arr.min() < 0 or arr.max() > ADC_MAX_VALUE):
        raise ValueError("samples must be within the 12-bit range")
    return arr.astype(_WIRE_DTYPE).tobytes()


__all__ = ["FrameDecodeError", "decode_frame", "encode_frame"]
