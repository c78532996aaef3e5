from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional


# ----------------------------
# Hardware constants
# ----------------------------

ADC_FULL_SCALE = 4096  # 12-bit converter; also the accumulator "empty" minimum
ADC_MAX_VALUE = ADC_FULL_SCALE - 1
BUFFER_CAPACITY = 4000
MIN_HARDWARE_RATE = 1000

# Approximate full-scale voltages for the 0 dB / 2.5 dB / 6 dB / 11 dB attenuations.
ATTEN_TO_MAX_V = (0.95, 1.25, 1.75, 3.3)
DEFAULT_MAX_VOLTAGE = 3.3

ZOOM_STEP = 1.1
ZOOM_SNAP = 1.001
MAX_ZOOM = 50.0

RECONNECT_DELAY_S = 2.0


def max_voltage_for_atten(index: Optional[int]) -> float:
    """Full-scale voltage for an attenuation index, 3.3 V when unknown."""
    if index is None or not 0 <= index < len(ATTEN_TO_MAX_V):
        return DEFAULT_MAX_VOLTAGE
    return ATTEN_TO_MAX_V[index]


# ----------------------------
# Configuration
# ----------------------------

@dataclass(frozen=True)
class ScopeConfig:
    """Acquisition and display configuration adopted after the device accepts it.

    `desired_rate` is the rate the user asked for; `sample_rate` is what the
    hardware actually runs at. Rates below `MIN_HARDWARE_RATE` are produced by
    running the hardware at 1 kHz and decimating in software.
    """

    desired_rate: int = 10_000
    sample_rate: int = 10_000
    bit_width: int = 12
    atten: int = 3
    test_hz: int = 100
    trigger: int = 2048
    invert: bool = False

    def __post_init__(self) -> None:
        if self.desired_rate <= 0:
            raise ValueError("desired_rate must be positive")
        if self.sample_rate < MIN_HARDWARE_RATE:
            raise ValueError(f"sample_rate must be at least {MIN_HARDWARE_RATE}")
        if self.sample_rate < self.desired_rate:
            raise ValueError("sample_rate must not be below desired_rate")
        if self.bit_width <= 0:
            raise ValueError("bit_width must be positive")
        if not 0 <= self.trigger <= ADC_MAX_VALUE:
            raise ValueError(f"trigger must be within 0..{ADC_MAX_VALUE}")
        object.__setattr__(self, "invert", bool(self.invert))

    @classmethod
    def from_desired_rate(cls, desired_rate: int, **kwargs: Any) -> "ScopeConfig":
        """Build a config whose hardware rate is derived from `desired_rate`."""
        hardware_rate = max(int(desired_rate), MIN_HARDWARE_RATE)
        return cls(desired_rate=int(desired_rate), sample_rate=hardware_rate, **kwargs)

    @property
    def is_decimated(self) -> bool:
        return self.desired_rate < MIN_HARDWARE_RATE

    @property
    def target_count(self) -> float:
        """Hardware samples folded into one min/max display pair."""
        if self.is_decimated:
            return self.sample_rate / self.desired_rate
        return 1.0

    @property
    def max_voltage(self) -> float:
        return max_voltage_for_atten(self.atten)

    def to_params(self) -> dict[str, int]:
        """Payload of the outbound parameter request."""
        return {
            "sample_rate": int(self.sample_rate),
            "bit_width": int(self.bit_width),
            "atten": int(self.atten),
            "test_hz": int(self.test_hz),
        }

    def to_record(self) -> dict[str, Any]:
        """Persisted form, key-compatible with the device web client."""
        record: dict[str, Any] = {"desiredRate": int(self.desired_rate)}
        record.update(self.to_params())
        record["trigger"] = int(self.trigger)
        record["invert"] = bool(self.invert)
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ScopeConfig":
        """Rebuild a config from a persisted record.

        Missing optional keys fall back to defaults; a missing or invalid
        `desiredRate` raises (KeyError/TypeError/ValueError). Non-finite
        numbers (JSON ``Infinity``, ``1e999``, ``NaN``) raise ValueError.
        """
        if not isinstance(record, Mapping):
            raise TypeError("stored configuration must be a mapping")
        for key, val in record.items():
            if isinstance(val, float) and not math.isfinite(val):
                raise ValueError(f"stored configuration field {key!r} is not finite")
        desired = int(record["desiredRate"])
        defaults = cls()
        return cls.from_desired_rate(
            desired,
            bit_width=int(record.get("bit_width", defaults.bit_width)),
            atten=int(record.get("atten", defaults.atten)),
            test_hz=int(record.get("test_hz", defaults.test_hz)),
            trigger=int(record.get("trigger", defaults.trigger)),
            invert=bool(record.get("invert", defaults.invert)),
        )


# ----------------------------
# Pipeline state
# ----------------------------

@dataclass
class DecimationState:
    """Running peak-detect accumulator carried between batches."""

    acc_min: int = ADC_FULL_SCALE
    acc_max: int = 0
    progress: float = 0.0
    target_count: float = 1.0

    def reset(self, target_count: Optional[float] = None) -> None:
        self.acc_min = ADC_FULL_SCALE
        self.acc_max = 0
        self.progress = 0.0
        if target_count is not None:
            if target_count < 1.0:
                raise ValueError("target_count must be at least 1")
            self.target_count = float(target_count)


@dataclass
class ViewState:
    """Zoom and pan of the scope canvas. At scale 1.0 the offsets are zero."""

    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0

    def reset(self) -> None:
        self.scale = 1.0
        self.offset_x = 0.0
        self.offset_y = 0.0


@dataclass(frozen=True)
class ReferencePoint:
    """Measurement anchor in domain coordinates (milliseconds, volts)."""

    t_ms: float
    volts: float


__all__ = [
    "ADC_FULL_SCALE",
    "ADC_MAX_VALUE",
    "ATTEN_TO_MAX_V",
    "BUFFER_CAPACITY",
    "DEFAULT_MAX_VOLTAGE",
    "DecimationState",
    "MAX_ZOOM",
    "MIN_HARDWARE_RATE",
    "RECONNECT_DELAY_S",
    "ReferencePoint",
    "ScopeConfig",
    "ViewState",
    "ZOOM_SNAP",
    "ZOOM_STEP",
    "max_voltage_for_atten",
]
