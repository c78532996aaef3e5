from __future__ import annotations

import logging
from typing import Optional

from daq.device_client import DeviceClient, DeviceRequestError
from shared.app_settings import AppSettingsStore, load_stored_config, save_config
from shared.models import ScopeConfig

from .pipeline import ScopePipeline

logger = logging.getLogger(__name__)


class ScopeController:
    """
    Applies configuration changes end to end.

    A new configuration is sent to the device first; only when the device
    accepts it is it adopted by the pipeline (which resets decimation) and
    persisted. A refusal leaves the previous configuration active and is
    re-raised for the GUI to show. Without a client (simulated source)
    configurations are adopted locally.
    """

    def __init__(
        self,
        pipeline: ScopePipeline,
        client: Optional[DeviceClient] = None,
        settings_store: Optional[AppSettingsStore] = None,
    ) -> None:
        self.pipeline = pipeline
        self.client = client
        self.settings_store = settings_store if settings_store is not None else AppSettingsStore()

    @property
    def config(self) -> ScopeConfig:
        return self.pipeline.config

    def apply(self, config: ScopeConfig) -> ScopeConfig:
        if self.client is not None:
            try:
                self.client.set_params(config)
            except DeviceRequestError:
                logger.error("Device rejected configuration; keeping %s", self.pipeline.config)
                raise
        self.pipeline.reconfigure(config)
        save_config(self.settings_store, config)
        return config

    def restore(self) -> Optional[ScopeConfig]:
        """Re-send the persisted configuration, if there is a readable one."""
        stored = load_stored_config(self.settings_store)
        if stored is None:
            return None
        logger.info("Restoring stored configuration")
        return self.apply(stored)

    def set_trigger(self, level: int, invert: bool) -> None:
        self.pipeline.set_trigger(level, invert)

    def forget_stored(self) -> None:
        self.settings_store.clear()


__all__ = ["ScopeController"]
