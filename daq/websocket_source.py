"""WebSocket client for the device's binary sample stream.

The device pushes raw frames of little-endian uint16 samples on ``/signal``.
On disconnect or connection failure the source waits a fixed delay and tries
again forever; the delay never grows.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.sync.client import connect

from shared.models import RECONNECT_DELAY_S

from .base_source import BaseSource

logger = logging.getLogger(__name__)

_RECV_POLL_S = 0.5


def signal_url(host: str, *, secure: bool = False) -> str:
    scheme = "wss" if secure else "ws"
    return f"{scheme}://{host}/signal"


class WebSocketSource(BaseSource):
    """Streams frames from a device WebSocket endpoint with fixed-delay reconnects."""

    @classmethod
    def source_class_name(cls) -> str:
        return "WebSocket"

    def __init__(
        self,
        url: str,
        *,
        retry_delay: float = RECONNECT_DELAY_S,
        open_timeout: float = 5.0,
        queue_maxsize: int = 64,
        connector: Callable[..., Any] = connect,
    ) -> None:
        super().__init__(queue_maxsize=queue_maxsize)
        self._url = url
        self._retry_delay = float(retry_delay)
        self._open_timeout = float(open_timeout)
        self._connector = connector
        self._wake = threading.Event()
        self._ws: Optional[Any] = None
        self.connect_attempts = 0

    @property
    def url(self) -> str:
        return self._url

    def stop(self, timeout: float = 2.0) -> None:
        self._wake.set()
        self._close_socket()
        super().stop(timeout)

    def reconnect(self) -> None:
        """Drop the current connection (if any) and retry without waiting."""
        self._wake.set()
        self._close_socket()

    def _close_socket(self) -> None:
        ws = self._ws
        if ws is None:
            return
        try:
            ws.close()
        except (OSError, WebSocketException) as exc:
            logger.debug("Error closing socket: %s", exc)

    def _run(self) -> None:
        stop = self.stop_event
        while not stop.is_set():
            self._wake.clear()
            self.set_link_status("connecting")
            self.connect_attempts += 1
            try:
                with self._connector(self._url, open_timeout=self._open_timeout) as ws:
                    self._ws = ws
                    self.set_link_status("connected")
                    logger.info("Connected to %s", self._url)
                    ws.send("hello")
                    self._pump(ws)
            except (OSError, TimeoutError, WebSocketException) as exc:
                logger.warning("Connection to %s failed: %s", self._url, exc)
            finally:
                self._ws = None

            if stop.is_set():
                break
            self.set_link_status("disconnected")
            logger.info("Disconnected. Retrying in %.0fs...", self._retry_delay)
            self._wake.wait(self._retry_delay)

    def _pump(self, ws: Any) -> None:
        stop = self.stop_event
        while not stop.is_set():
            try:
                message = ws.recv(timeout=_RECV_POLL_S)
            except TimeoutError:
                continue
            except ConnectionClosed as exc:
                logger.info("Stream closed: %s", exc)
                return
            if isinstance(message, str):
                logger.debug("Ignoring text message: %.40s", message)
                continue
            self.emit_frame(message)


__all__ = ["WebSocketSource", "signal_url"]
