# daq/simulated_source.py
import threading
import time

import numpy as np

from shared.models import ADC_MAX_VALUE, ScopeConfig

from .base_source import BaseSource
from .frames import encode_frame


class SimulatedSource(BaseSource):
    """
    Stands in for the device when no hardware is attached.

    Produces the device's test output: a square wave at `test_hz` sampled at
    the configured hardware rate, with a little converter noise, delivered in
    frames of roughly `frame_sec` seconds.
    """

    @classmethod
    def source_class_name(cls) -> str:
        return "Simulated"

    def __init__(
        self,
        config: ScopeConfig | None = None,
        *,
        frame_sec: float = 0.02,
        noise_lsb: float = 8.0,
        seed: int | None = None,
        queue_maxsize: int = 64,
    ) -> None:
        super().__init__(queue_maxsize=queue_maxsize)
        self._config_lock = threading.Lock()
        self._config = config if config is not None else ScopeConfig()
        self._frame_sec = float(frame_sec)
        self._noise_lsb = float(noise_lsb)
        self._rng = np.random.default_rng(seed)
        self._sample_counter = 0
        self._low = 600
        self._high = 3400

    def configure(self, config: ScopeConfig) -> None:
        with self._config_lock:
            self._config = config

    def generate(self, n_samples: int) -> np.ndarray:
        """Next `n_samples` of the test waveform, continuing the phase of the last call."""
        with self._config_lock:
            rate = float(self._config.sample_rate)
            test_hz = float(self._config.test_hz)
        idx = np.arange(self._sample_counter, self._sample_counter + n_samples, dtype=np.float64)
        self._sample_counter += n_samples

        if test_hz > 0:
            phase = (idx * test_hz / rate) % 1.0
            wave = np.where(phase < 0.5, self._high, self._low).astype(np.float64)
        else:
            wave = np.full(n_samples, (self._high + self._low) / 2.0)
        if self._noise_lsb > 0:
            wave += self._rng.normal(0.0, self._noise_lsb, size=n_samples)
        return np.clip(np.rint(wave), 0, ADC_MAX_VALUE).astype(np.uint16)

    def _run(self) -> None:
        self.set_link_status("connected")
        stop = self.stop_event
        next_deadline = time.monotonic()
        while not stop.is_set():
            with self._config_lock:
                rate = self._config.sample_rate
            n_samples = max(1, int(rate * self._frame_sec))
            self.emit_frame(encode_frame(self.generate(n_samples)))

            next_deadline += n_samples / rate
            delay = next_deadline - time.monotonic()
            if delay < -1.0:
                # Fell far behind (e.g. suspended); do not try to catch up.
                next_deadline = time.monotonic()
                delay = 0.0
            if delay > 0:
                stop.wait(delay)
