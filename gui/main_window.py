from __future__ import annotations

import logging
import queue

from PySide6 import QtCore, QtGui, QtWidgets

from core import ScopeController, ScopePipeline
from daq.base_source import BaseSource
from daq.device_client import DeviceRequestError
from daq.simulated_source import SimulatedSource
from shared.models import ADC_MAX_VALUE, ScopeConfig

from .scope_canvas import ScopeCanvas

logger = logging.getLogger(__name__)

ATTEN_LABELS = ("0 dB (~0.95 V)", "2.5 dB (~1.25 V)", "6 dB (~1.75 V)", "11 dB (~3.3 V)")
BIT_WIDTHS = (9, 10, 11, 12)
_MAX_FRAMES_PER_TICK = 256

_STATUS_TEXT = {
    "idle": ("Idle", "#a3a3a3"),
    "connecting": ("Connecting...", "#facc15"),
    "connected": ("Connected via WebSocket", "#4ade80"),
    "disconnected": ("Disconnected. Retrying in 2s...", "#ef4444"),
}


class WifiDialog(QtWidgets.QDialog):
    """Collects station credentials for the device."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Wi-Fi Settings")
        self.setModal(True)

        layout = QtWidgets.QFormLayout(self)
        self.ssid_edit = QtWidgets.QLineEdit()
        self.password_edit = QtWidgets.QLineEdit()
        self.password_edit.setEchoMode(QtWidgets.QLineEdit.EchoMode.Password)
        layout.addRow("SSID:", self.ssid_edit)
        layout.addRow("Password:", self.password_edit)

        btn_box = QtWidgets.QDialogButtonBox(
            QtWidgets.QDialogButtonBox.StandardButton.Save | QtWidgets.QDialogButtonBox.StandardButton.Cancel
        )
        layout.addRow(btn_box)
        btn_box.accepted.connect(self.accept)
        btn_box.rejected.connect(self.reject)

    def credentials(self) -> tuple[str, str]:
        return self.ssid_edit.text().strip(), self.password_edit.text()


class MainWindow(QtWidgets.QMainWindow):
    """Main application window: parameter controls, status line and the scope canvas."""

    def __init__(
        self,
        controller: ScopeController,
        source: BaseSource,
        *,
        plot_refresh_hz: float = 60.0,
    ) -> None:
        super().__init__()
        self._controller = controller
        self._pipeline: ScopePipeline = controller.pipeline
        self._source = source
        self._suppress_apply = False

        self.setWindowTitle("ADC Scope")
        self.resize(1100, 720)

        self._init_ui()
        self._load_config_into_form(self._pipeline.config)

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(max(1, int(round(1000.0 / plot_refresh_hz))))
        self._timer.timeout.connect(self._on_tick)

        close_shortcut = QtGui.QShortcut(QtGui.QKeySequence(QtGui.QKeySequence.StandardKey.Close), self)
        close_shortcut.activated.connect(self.close)
        QtCore.QTimer.singleShot(0, self._startup)

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _init_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QHBoxLayout(central)
        layout.setContentsMargins(6, 6, 6, 6)

        self.canvas = ScopeCanvas(self._pipeline, central)
        layout.addWidget(self.canvas, 1)

        self.trigger_slider = QtWidgets.QSlider(QtCore.Qt.Orientation.Vertical, central)
        self.trigger_slider.setRange(0, ADC_MAX_VALUE)
        self.trigger_slider.setInvertedAppearance(True)
        self.trigger_slider.setToolTip("Trigger level")
        layout.addWidget(self.trigger_slider)

        layout.addWidget(self._build_controls(central))
        self.setCentralWidget(central)

        self.status_label = QtWidgets.QLabel()
        self.statusBar().addWidget(self.status_label, 1)
        self.freeze_label = QtWidgets.QLabel()
        self.statusBar().addPermanentWidget(self.freeze_label)

        self.sample_rate_spin.editingFinished.connect(self._apply_params)
        self.bit_width_combo.currentIndexChanged.connect(self._apply_params)
        self.atten_combo.currentIndexChanged.connect(self._apply_params)
        self.test_hz_spin.editingFinished.connect(self._apply_params)
        self.trigger_slider.valueChanged.connect(self._on_trigger_moved)
        self.trigger_slider.sliderReleased.connect(self._apply_params)
        self.invert_check.toggled.connect(self._on_invert_toggled)
        self.reconnect_button.clicked.connect(self._on_reconnect)
        self.reset_button.clicked.connect(self._on_reset_stored)
        self.wifi_button.clicked.connect(self._on_wifi)
        self.power_button.clicked.connect(self._on_power_off)

    def _build_controls(self, parent: QtWidgets.QWidget) -> QtWidgets.QWidget:
        panel = QtWidgets.QWidget(parent)
        panel.setMaximumWidth(260)
        vbox = QtWidgets.QVBoxLayout(panel)
        vbox.setContentsMargins(0, 0, 0, 0)

        acq_group = QtWidgets.QGroupBox("Acquisition")
        form = QtWidgets.QFormLayout(acq_group)
        self.sample_rate_spin = QtWidgets.QSpinBox()
        self.sample_rate_spin.setRange(1, 2_000_000)
        self.sample_rate_spin.setSuffix(" Hz")
        form.addRow("Sample rate", self.sample_rate_spin)

        self.bit_width_combo = QtWidgets.QComboBox()
        for bits in BIT_WIDTHS:
            self.bit_width_combo.addItem(f"{bits} bit", bits)
        form.addRow("Bit width", self.bit_width_combo)

        self.atten_combo = QtWidgets.QComboBox()
        for idx, label in enumerate(ATTEN_LABELS):
            self.atten_combo.addItem(label, idx)
        form.addRow("Attenuation", self.atten_combo)

        self.test_hz_spin = QtWidgets.QSpinBox()
        self.test_hz_spin.setRange(0, 100_000)
        self.test_hz_spin.setSuffix(" Hz")
        form.addRow("Test signal", self.test_hz_spin)
        vbox.addWidget(acq_group)

        trig_group = QtWidgets.QGroupBox("Trigger")
        trig_layout = QtWidgets.QVBoxLayout(trig_group)
        self.invert_check = QtWidgets.QCheckBox("Invert edge")
        trig_layout.addWidget(self.invert_check)
        vbox.addWidget(trig_group)

        self.reconnect_button = QtWidgets.QPushButton("Reconnect")
        self.reset_button = QtWidgets.QPushButton("Reset stored settings")
        vbox.addWidget(self.reconnect_button)
        vbox.addWidget(self.reset_button)

        device_group = QtWidgets.QGroupBox("Device")
        device_layout = QtWidgets.QVBoxLayout(device_group)
        self.wifi_button = QtWidgets.QPushButton("Wi-Fi...")
        self.power_button = QtWidgets.QPushButton("Power off")
        device_layout.addWidget(self.wifi_button)
        device_layout.addWidget(self.power_button)
        has_device = self._controller.client is not None
        self.wifi_button.setEnabled(has_device)
        self.power_button.setEnabled(has_device)
        vbox.addWidget(device_group)

        hint = QtWidgets.QLabel(
            "Click: freeze / set reference\nWheel: zoom\nMiddle drag: pan\nRight click: reset view"
        )
        hint.setStyleSheet("color: #888;")
        vbox.addWidget(hint)
        vbox.addStretch(1)
        return panel

    # ------------------------------------------------------------------
    # Form <-> config
    # ------------------------------------------------------------------

    def _load_config_into_form(self, config: ScopeConfig) -> None:
        self._suppress_apply = True
        try:
            self.sample_rate_spin.setValue(config.desired_rate)
            idx = self.bit_width_combo.findData(config.bit_width)
            if idx >= 0:
                self.bit_width_combo.setCurrentIndex(idx)
            idx = self.atten_combo.findData(config.atten)
            if idx >= 0:
                self.atten_combo.setCurrentIndex(idx)
            self.test_hz_spin.setValue(config.test_hz)
            self.trigger_slider.setValue(config.trigger)
            self.invert_check.setChecked(config.invert)
        finally:
            self._suppress_apply = False

    def _config_from_form(self) -> ScopeConfig:
        return ScopeConfig.from_desired_rate(
            self.sample_rate_spin.value(),
            bit_width=int(self.bit_width_combo.currentData()),
            atten=int(self.atten_combo.currentData()),
            test_hz=self.test_hz_spin.value(),
            trigger=self.trigger_slider.value(),
            invert=self.invert_check.isChecked(),
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _startup(self) -> None:
        try:
            restored = self._controller.restore()
            if restored is not None:
                self._load_config_into_form(restored)
                self._sync_source(restored)
            else:
                self._adopt(self._config_from_form())
        except DeviceRequestError as exc:
            QtWidgets.QMessageBox.critical(self, "Configuration", f"Error updating configuration:\n{exc}")
        self._source.start()
        self._timer.start()

    def _apply_params(self) -> None:
        if self._suppress_apply:
            return
        try:
            config = self._config_from_form()
        except ValueError as exc:
            QtWidgets.QMessageBox.critical(self, "Configuration", f"Invalid configuration:\n{exc}")
            self._load_config_into_form(self._pipeline.config)
            return
        try:
            self._adopt(config)
        except DeviceRequestError as exc:
            QtWidgets.QMessageBox.critical(self, "Configuration", f"Error updating configuration:\n{exc}")

    def _adopt(self, config: ScopeConfig) -> None:
        self._controller.apply(config)
        self._sync_source(config)

    def _sync_source(self, config: ScopeConfig) -> None:
        if isinstance(self._source, SimulatedSource):
            self._source.configure(config)

    def _on_trigger_moved(self, value: int) -> None:
        self._controller.set_trigger(value, self.invert_check.isChecked())
        self.canvas.update()

    def _on_invert_toggled(self, checked: bool) -> None:
        self._controller.set_trigger(self.trigger_slider.value(), checked)
        self._apply_params()

    def _on_reconnect(self) -> None:
        reconnect = getattr(self._source, "reconnect", None)
        if reconnect is not None:
            reconnect()
        elif not self._source.running:
            self._source.start()

    def _on_reset_stored(self) -> None:
        self._controller.forget_stored()
        defaults = ScopeConfig()
        self._load_config_into_form(defaults)
        self._apply_params()

    def _on_wifi(self) -> None:
        client = self._controller.client
        if client is None:
            return
        dlg = WifiDialog(self)
        if dlg.exec() != QtWidgets.QDialog.DialogCode.Accepted:
            return
        ssid, password = dlg.credentials()
        if not ssid:
            QtWidgets.QMessageBox.warning(self, "Wi-Fi", "SSID is required")
            return
        try:
            reply = client.save_wifi(ssid, password)
        except DeviceRequestError as exc:
            QtWidgets.QMessageBox.critical(self, "Wi-Fi", f"Error: {exc}")
            return
        QtWidgets.QMessageBox.information(self, "Wi-Fi", reply or "Saved")

    def _on_power_off(self) -> None:
        client = self._controller.client
        if client is None:
            return
        answer = QtWidgets.QMessageBox.question(self, "Power off", "Power off the device?")
        if answer != QtWidgets.QMessageBox.StandardButton.Yes:
            return
        try:
            client.power_off()
        except DeviceRequestError as exc:
            # The device may drop the connection while shutting down.
            logger.info("Power-off request ended with: %s", exc)

    # ------------------------------------------------------------------
    # Frame tick
    # ------------------------------------------------------------------

    def _on_tick(self) -> None:
        data_queue = self._source.data_queue
        for _ in range(_MAX_FRAMES_PER_TICK):
            try:
                payload = data_queue.get_nowait()
            except queue.Empty:
                break
            self._pipeline.ingest_frame(payload)

        text, color = _STATUS_TEXT.get(self._source.link_status, _STATUS_TEXT["idle"])
        if isinstance(self._source, SimulatedSource):
            text = "Simulated source"
        self.status_label.setText(text)
        self.status_label.setStyleSheet(f"color: {color};")
        self.freeze_label.setText("FROZEN" if self._pipeline.frozen else "")

        if not self._pipeline.frozen:
            self.canvas.update()

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:  # type: ignore[override]
        self._timer.stop()
        self._source.stop()
        super().closeEvent(event)


__all__ = ["MainWindow"]
