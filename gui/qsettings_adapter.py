"""Persist AppSettings through QSettings so the device host, refresh rate and
last accepted scope configuration survive restarts.

Keys are grouped (``display/...``, ``device/...``) in the platform store. The
shared settings module stays free of Qt; only this adapter touches QSettings.
"""
from __future__ import annotations

import logging

from PySide6.QtCore import QSettings

from shared.app_settings import AppSettingsStore, SettingsPersistence

logger = logging.getLogger(__name__)

# AppSettings field -> (QSettings key, value type)
_KEYS = {
    "plot_refresh_hz": ("display/plot_refresh_hz", float),
    "device_host": ("device/host", str),
    "stored_config": ("device/stored_config", str),
}


class QSettingsPersistence(SettingsPersistence):
    """QSettings-backed persistence for GUI mode."""

    def __init__(self, organization: str = "ADCScope", application: str = "ADCScope") -> None:
        self._qsettings = QSettings(organization, application)

    def load(self) -> dict:
        data = {}
        for name, (key, kind) in _KEYS.items():
            if not self._qsettings.contains(key):
                continue
            try:
                data[name] = self._qsettings.value(key, type=kind)
            except (TypeError, ValueError) as exc:
                logger.warning("Ignoring unreadable setting %s: %s", key, exc)
        return data

    def save(self, data: dict) -> None:
        for name, val in data.items():
            if name not in _KEYS:
                continue
            key = _KEYS[name][0]
            if val is None:
                self._qsettings.remove(key)
            else:
                self._qsettings.setValue(key, val)
        self._qsettings.sync()

    def clear(self) -> None:
        """Remove only the keys this adapter owns."""
        for key, _ in _KEYS.values():
            self._qsettings.remove(key)
        self._qsettings.sync()


def create_gui_settings_store() -> AppSettingsStore:
    return AppSettingsStore(persistence=QSettingsPersistence())


__all__ = ["QSettingsPersistence", "create_gui_settings_store"]
