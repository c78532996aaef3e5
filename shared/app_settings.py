from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Dict, Optional

from .models import ScopeConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppSettings:
    plot_refresh_hz: float = 60.0
    device_host: str = "192.168.4.1"
    stored_config: Optional[str] = None  # JSON record of the last accepted ScopeConfig


class SettingsPersistence(ABC):
    """Backend that stores settings as a flat mapping of primitive values."""

    @abstractmethod
    def load(self) -> dict:
        raise NotImplementedError

    @abstractmethod
    def save(self, data: dict) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError


class InMemoryPersistence(SettingsPersistence):
    """Process-local persistence for headless runs and tests."""

    def __init__(self, initial: Optional[dict] = None) -> None:
        self._data: dict = dict(initial or {})

    def load(self) -> dict:
        return dict(self._data)

    def save(self, data: dict) -> None:
        for key, val in data.items():
            if val is None:
                self._data.pop(key, None)
            else:
                self._data[key] = val

    def clear(self) -> None:
        self._data.clear()


def _coerce(settings: AppSettings, data: dict) -> AppSettings:
    updates: Dict[str, Any] = {}
    try:
        if "plot_refresh_hz" in data:
            refresh = float(data["plot_refresh_hz"])
            if refresh > 0:
                updates["plot_refresh_hz"] = refresh
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid plot_refresh_hz: %r", data.get("plot_refresh_hz"))
    if data.get("device_host"):
        updates["device_host"] = str(data["device_host"])
    if data.get("stored_config") is not None:
        updates["stored_config"] = str(data["stored_config"])
    return replace(settings, **updates)


class AppSettingsStore:
    """Thread-safe persistent settings store for application-wide preferences."""

    def __init__(self, persistence: Optional[SettingsPersistence] = None) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[int, Callable[[AppSettings], None]] = {}
        self._next_token = 0
        self._persistence = persistence if persistence is not None else InMemoryPersistence()
        self._settings = _coerce(AppSettings(), self._persistence.load())

    def get(self) -> AppSettings:
        with self._lock:
            return self._settings

    def update(self, **kwargs) -> AppSettings:
        with self._lock:
            new_settings = replace(self._settings, **kwargs)
            self._settings = new_settings
            callbacks = list(self._subscribers.values())
            self._persistence.save({f.name: getattr(new_settings, f.name) for f in fields(AppSettings)})
        self._notify(callbacks, new_settings)
        return new_settings

    def clear(self) -> AppSettings:
        """Forget everything persisted and fall back to defaults."""
        with self._lock:
            self._persistence.clear()
            self._settings = AppSettings()
            callbacks = list(self._subscribers.values())
            snapshot = self._settings
        self._notify(callbacks, snapshot)
        return snapshot

    def subscribe(self, callback: Callable[[AppSettings], None], *, replay: bool = True) -> Callable[[], None]:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._subscribers[token] = callback
            snapshot = self._settings
        if replay:
            callback(snapshot)

        def unsubscribe() -> None:
            with self._lock:
                self._subscribers.pop(token, None)

        return unsubscribe

    @staticmethod
    def _notify(callbacks, settings: AppSettings) -> None:
        for callback in callbacks:
            try:
                callback(settings)
            except Exception as exc:
                logger.debug("App settings subscriber callback failed: %s", exc)
                continue


def load_stored_config(store: AppSettingsStore) -> Optional[ScopeConfig]:
    """Return the persisted scope configuration, or None if absent or unreadable."""
    raw = store.get().stored_config
    if not raw:
        return None
    try:
        return ScopeConfig.from_record(json.loads(raw))
    except (KeyError, TypeError, ValueError, OverflowError) as exc:
        logger.warning("Failed to load stored configuration: %s", exc)
        return None


def save_config(store: AppSettingsStore, config: ScopeConfig) -> None:
    store.update(stored_config=json.dumps(config.to_record()))


__all__ = [
    "AppSettings",
    "AppSettingsStore",
    "InMemoryPersistence",
    "SettingsPersistence",
    "load_stored_config",
    "save_config",
]
