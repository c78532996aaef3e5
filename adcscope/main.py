import argparse
import gc
import logging
import sys

from PySide6.QtWidgets import QApplication

from core import ScopeController, ScopePipeline
from daq.device_client import DeviceClient
from daq.simulated_source import SimulatedSource
from daq.websocket_source import WebSocketSource, signal_url
from gui.main_window import MainWindow
from gui.qsettings_adapter import create_gui_settings_store


# Tune garbage collection for real-time performance.
# Increase gen0 threshold to reduce frequency of small collections during streaming.
gc.set_threshold(1500, 15, 15)


def _parse_args(argv):
    parser = argparse.ArgumentParser(prog="adcscope", description="Live viewer for a 12-bit ADC stream.")
    parser.add_argument("--host", help="device host or IP (remembered for the next launch)")
    parser.add_argument("--simulate", action="store_true", help="use a built-in test signal instead of a device")
    parser.add_argument("--log-level", default="INFO", help="logging level (default: INFO)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName("ADC Scope")

    settings_store = create_gui_settings_store()
    if args.host:
        settings_store.update(device_host=args.host)
    app_settings = settings_store.get()

    pipeline = ScopePipeline()
    if args.simulate:
        source = SimulatedSource(pipeline.config)
        client = None
    else:
        source = WebSocketSource(signal_url(app_settings.device_host))
        client = DeviceClient(app_settings.device_host)
    controller = ScopeController(pipeline, client, settings_store)

    window = MainWindow(controller, source, plot_refresh_hz=app_settings.plot_refresh_hz)
    window.show()
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
