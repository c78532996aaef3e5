from __future__ import annotations

"""
Base class for streaming sample sources.

Goals:
- Simple contract for the GUI: raw binary frames over a queue, decoded and
  ingested by the pipeline on the GUI thread.
- Clean lifecycle: start/stop of one background producer thread.
- Centralized queue/backpressure/drop-oldest behavior.

Subclasses implement `_run()`, calling `emit_frame()` for each frame and
checking `stop_event` cooperatively.
"""

import logging
import queue
import threading
from abc import ABC, abstractmethod
from typing import Any, Literal, Optional

logger = logging.getLogger(__name__)

State = Literal["stopped", "running"]
LinkStatus = Literal["idle", "connecting", "connected", "disconnected"]


class BaseSource(ABC):
    """
    Abstract base for all sample sources.

    Typical flow:
        source = WebSocketSource("ws://192.168.4.1/signal")
        source.start()
        # Drain source.data_queue (bytes frames) once per GUI frame tick
        source.stop()
    """

    @classmethod
    @abstractmethod
    def source_class_name(cls) -> str:
        """Return the human-friendly name for this source type."""
        raise NotImplementedError

    def __init__(self, queue_maxsize: int = 64) -> None:
        self.data_queue: "queue.Queue[bytes]" = queue.Queue(maxsize=queue_maxsize)
        self._stop_event = threading.Event()
        self._state_lock = threading.RLock()
        self._worker: Optional[threading.Thread] = None

        self._state: State = "stopped"
        self._link_status: LinkStatus = "idle"

        # Diagnostics
        self._frames = 0
        self._drops = 0

    # ----------
    # Lifecycle
    # ----------

    def start(self) -> None:
        """Begin producing frames on a background thread."""
        with self._state_lock:
            if self._state == "running":
                return
            self._reset_counters()
            self._stop_event.clear()
            self._worker = threading.Thread(
                target=self._run_safe,
                name=f"{type(self).__name__}-worker",
                daemon=True,
            )
            self._state = "running"
            self._worker.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Stop producing; queued frames remain available to the consumer."""
        with self._state_lock:
            if self._state != "running":
                return
            self._stop_event.set()
            worker = self._worker
            self._worker = None
            self._state = "stopped"
        if worker is not None and worker is not threading.current_thread():
            worker.join(timeout)
        self.set_link_status("idle")

    def _run_safe(self) -> None:
        try:
            self._run()
        except Exception:
            logger.exception("%s worker crashed", type(self).__name__)
            self.set_link_status("disconnected")

    @abstractmethod
    def _run(self) -> None:
        """Producer loop. Must return promptly once `stop_event` is set."""
        raise NotImplementedError

    # --------------
    # Emit utilities
    # --------------

    def emit_frame(self, payload: bytes) -> None:
        """Enqueue one raw frame for the consumer."""
        self._frames += 1
        self._safe_put(payload)

    # --------------
    # Introspection
    # --------------

    @property
    def state(self) -> State:
        with self._state_lock:
            return self._state

    @property
    def running(self) -> bool:
        return self.state == "running"

    @property
    def link_status(self) -> LinkStatus:
        return self._link_status

    def set_link_status(self, status: LinkStatus) -> None:
        if status != self._link_status:
            logger.debug("%s link status: %s -> %s", type(self).__name__, self._link_status, status)
        self._link_status = status

    @property
    def stop_event(self) -> threading.Event:
        """Subclasses check this in their producer loops for cooperative stop."""
        return self._stop_event

    def stats(self) -> dict[str, Any]:
        """Counters and queue depth for the status line and debugging."""
        return {
            "state": self.state,
            "link": self._link_status,
            "queue_size": self.data_queue.qsize(),
            "queue_maxsize": self.data_queue.maxsize,
            "frames": self._frames,
            "drops": self._drops,
        }

    # -------------
    # Base helpers
    # -------------

    def _reset_counters(self) -> None:
        """Reset counters at run start; clears the queue too."""
        self._frames = 0
        self._drops = 0
        try:
            while True:
                self.data_queue.get_nowait()
        except queue.Empty:
            pass

    def _safe_put(self, item: bytes) -> None:
        """
        Drop-oldest backpressure: evict one queued frame, then retry once.
        A stalled consumer therefore always sees the most recent frames.
        """
        try:
            self.data_queue.put_nowait(item)
        except queue.Full:
            try:
                _ = self.data_queue.get_nowait()
                self._drops += 1
            except queue.Empty:
                pass
            try:
                self.data_queue.put_nowait(item)
            except queue.Full:
                pass


__all__ = ["BaseSource", "LinkStatus", "State"]
