"""HTTP control endpoints of the ADC device."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any, Callable, Optional

from shared.models import ScopeConfig

logger = logging.getLogger(__name__)


class DeviceRequestError(RuntimeError):
    """The device rejected a request or could not be reached."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class DeviceClient:
    """
    Thin client for the device's configuration API.

    `opener` defaults to `urllib.request.urlopen`; tests pass a fake with the
    same signature.
    """

    def __init__(
        self,
        host: str,
        *,
        timeout: float = 5.0,
        opener: Callable[..., Any] = urllib.request.urlopen,
    ) -> None:
        self._base_url = host if "://" in host else f"http://{host}"
        self._base_url = self._base_url.rstrip("/")
        self._timeout = float(timeout)
        self._opener = opener

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_params(self, config: ScopeConfig) -> None:
        """Ask the device to run with `config`. Raises DeviceRequestError on refusal."""
        payload = config.to_params()
        logger.info("Sending parameters %s", payload)
        self._request("POST", "/params", json_body=payload)

    def save_wifi(self, ssid: str, password: str) -> str:
        """Store station credentials on the device; returns its reply text."""
        if not ssid:
            raise ValueError("SSID is required")
        return self._request("POST", "/api/save_wifi", json_body={"ssid": ssid, "password": password})

    def power_off(self) -> None:
        self._request("GET", "/poweroff")

    def _request(self, method: str, path: str, *, json_body: Optional[dict] = None) -> str:
        data = None
        headers = {}
        if json_body is not None:
            data = json.dumps(json_body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        request = urllib.request.Request(
            url=f"{self._base_url}{path}",
            data=data,
            headers=headers,
            method=method,
        )
        try:
            with self._opener(request, timeout=self._timeout) as response:
                status = getattr(response, "status", 200)
                body = response.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as exc:
            raise DeviceRequestError(f"{method} {path} failed with HTTP {exc.code}", status=exc.code) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise DeviceRequestError(f"{method} {path} failed: {exc}") from exc

        if not 200 <= status < 300:
            raise DeviceRequestError(f"{method} {path} failed with HTTP {status}", status=status)
        return body


__all__ = ["DeviceClient", "DeviceRequestError"]
