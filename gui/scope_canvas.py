"""ScopeCanvas - QPainter renderer for the single-channel waveform.

Pointer, wheel and resize events are not applied directly: they are posted to
the pipeline as view commands and take effect when the next frame is prepared
in `paintEvent`.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
from PySide6 import QtCore, QtGui, QtWidgets

from core.pipeline import (
    ClickCommand,
    FrameSnapshot,
    PanCommand,
    PointerCommand,
    ResetViewCommand,
    ResizeCommand,
    ScopePipeline,
    ZoomCommand,
)

logger = logging.getLogger(__name__)

BACKGROUND = QtGui.QColor("#111111")
GRID = QtGui.QColor("#333333")
LABEL = QtGui.QColor("#ffffff")
TRACE = QtGui.QColor("#4ade80")
REFERENCE = QtGui.QColor("#eab308")
DELTA_TEXT = QtGui.QColor("yellow")

_VOLTAGE_LABEL_MARGIN = 20
_TIME_LABEL_MARGIN = 50


def format_voltage_label(volts: float) -> str:
    return f"{volts:.2f}V"


def format_time_label(t_ms: float) -> str:
    if abs(t_ms) >= 1000:
        return f"{t_ms / 1000:.2f}s"
    return f"{t_ms:.1f}ms"


def format_readout(frame: FrameSnapshot) -> list[str]:
    """Cursor readout lines: position, plus the delta to the reference when frozen."""
    readout = frame.readout
    if readout is None:
        return []
    lines = [f"{readout.volts:.3f}V, {readout.t_ms:.2f}ms"]
    if readout.delta_t_ms is not None and readout.delta_volts is not None:
        freq = readout.frequency_hz
        freq_text = f"{freq:.2f} Hz" if freq is not None else "-- Hz"
        lines.append(
            f"ΔV {readout.delta_volts:.3f}V, ΔT {readout.delta_t_ms:.2f}ms ({freq_text})"
        )
    return lines


class ScopeCanvas(QtWidgets.QWidget):
    """Draws grid, trace and crosshairs for a `ScopePipeline`."""

    def __init__(self, pipeline: ScopePipeline, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent)
        self._pipeline = pipeline
        self._pan_anchor: Optional[QtCore.QPointF] = None
        self.setMouseTracking(True)
        self.setMinimumSize(320, 200)
        self.setSizePolicy(QtWidgets.QSizePolicy.Policy.Expanding, QtWidgets.QSizePolicy.Policy.Expanding)
        self.setFocusPolicy(QtCore.Qt.FocusPolicy.ClickFocus)

    # ------------------------------------------------------------------
    # Events -> commands
    # ------------------------------------------------------------------

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        size = event.size()
        self._pipeline.post(ResizeCommand(size.width(), size.height()))

    def wheelEvent(self, event: QtGui.QWheelEvent) -> None:  # type: ignore[override]
        steps = event.angleDelta().y()
        if steps == 0:
            event.ignore()
            return
        pos = event.position()
        # Wheel rolled away from the user zooms in.
        self._pipeline.post(ZoomCommand(delta=-steps, x=pos.x(), y=pos.y()))
        event.accept()
        self._repaint_if_frozen()

    def mousePressEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        pos = event.position()
        button = event.button()
        if button == QtCore.Qt.MouseButton.LeftButton:
            self._pipeline.post(ClickCommand(pos.x(), pos.y()))
            self.update()
        elif button == QtCore.Qt.MouseButton.MiddleButton:
            self._pan_anchor = pos
            self.setCursor(QtGui.QCursor(QtCore.Qt.CursorShape.ClosedHandCursor))
        elif button == QtCore.Qt.MouseButton.RightButton:
            self._pipeline.post(ResetViewCommand())
            self.update()
        event.accept()

    def mouseReleaseEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        if event.button() == QtCore.Qt.MouseButton.MiddleButton and self._pan_anchor is not None:
            self._pan_anchor = None
            self.unsetCursor()
        event.accept()

    def mouseMoveEvent(self, event: QtGui.QMouseEvent) -> None:  # type: ignore[override]
        pos = event.position()
        if self._pan_anchor is not None:
            self._pipeline.post(PanCommand(pos.x() - self._pan_anchor.x(), pos.y() - self._pan_anchor.y()))
            self._pan_anchor = pos
        self._pipeline.post(PointerCommand(pos.x(), pos.y()))
        self._repaint_if_frozen()

    def leaveEvent(self, event: QtCore.QEvent) -> None:  # type: ignore[override]
        self._pipeline.post(PointerCommand(None, None))
        self._repaint_if_frozen()
        super().leaveEvent(event)

    def _repaint_if_frozen(self) -> None:
        # While live, the frame timer repaints; frozen frames only redraw on interaction.
        if self._pipeline.frozen:
            self.update()

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def paintEvent(self, event: QtGui.QPaintEvent) -> None:  # type: ignore[override]
        frame = self._pipeline.prepare_frame()
        painter = QtGui.QPainter(self)
        try:
            painter.fillRect(self.rect(), BACKGROUND)
            self._draw_grid(painter, frame)
            self._draw_trace(painter, frame)
            if frame.pointer is not None:
                self._draw_crosshairs(painter, frame.pointer[0], frame.pointer[1], TRACE)
            if frame.reference is not None:
                view = self._pipeline.view
                self._draw_crosshairs(
                    painter,
                    float(view.time_to_x(frame.reference.t_ms)),
                    float(view.volts_to_y(frame.reference.volts)),
                    REFERENCE,
                )
            self._draw_readout(painter, frame)
        finally:
            painter.end()

    def _draw_grid(self, painter: QtGui.QPainter, frame: FrameSnapshot) -> None:
        view = self._pipeline.view
        w = self.width()
        h = self.height()
        painter.setFont(QtGui.QFont("Monospace", 10))
        grid_pen = QtGui.QPen(GRID, 1)
        for volts in frame.voltage_ticks:
            y = float(view.volts_to_y(volts))
            if y < -_VOLTAGE_LABEL_MARGIN or y > h + _VOLTAGE_LABEL_MARGIN:
                continue
            painter.setPen(grid_pen)
            painter.drawLine(QtCore.QPointF(0, y), QtCore.QPointF(w, y))
            painter.setPen(LABEL)
            painter.drawText(QtCore.QPointF(5, y + 3), format_voltage_label(volts))

        metrics = painter.fontMetrics()
        for t_ms in frame.time_ticks:
            x = float(view.time_to_x(t_ms))
            if x < -_TIME_LABEL_MARGIN or x > w + _TIME_LABEL_MARGIN:
                continue
            painter.setPen(grid_pen)
            painter.drawLine(QtCore.QPointF(x, 0), QtCore.QPointF(x, h))
            label = format_time_label(t_ms)
            painter.setPen(LABEL)
            painter.drawText(QtCore.QPointF(x - metrics.horizontalAdvance(label) / 2, h - 5), label)

    def _draw_trace(self, painter: QtGui.QPainter, frame: FrameSnapshot) -> None:
        if frame.samples.size < 2:
            return
        xs, ys = self._pipeline.view.sample_to_screen(frame.samples)
        # Points are ordered by x; only hand the visible run (plus one either side) to Qt.
        lo = max(int(np.searchsorted(xs, 0.0, side="left")) - 1, 0)
        hi = min(int(np.searchsorted(xs, float(self.width()), side="right")) + 1, xs.size)
        if hi - lo < 2:
            return
        polygon = QtGui.QPolygonF([QtCore.QPointF(x, y) for x, y in zip(xs[lo:hi].tolist(), ys[lo:hi].tolist())])
        painter.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing, True)
        painter.setPen(QtGui.QPen(TRACE, 2))
        painter.drawPolyline(polygon)
        painter.setRenderHint(QtGui.QPainter.RenderHint.Antialiasing, False)

    def _draw_crosshairs(self, painter: QtGui.QPainter, x: float, y: float, color: QtGui.QColor) -> None:
        pen = QtGui.QPen(color, 1, QtCore.Qt.PenStyle.DashLine)
        painter.setPen(pen)
        painter.drawLine(QtCore.QPointF(x, 0), QtCore.QPointF(x, self.height()))
        painter.drawLine(QtCore.QPointF(0, y), QtCore.QPointF(self.width(), y))

    def _draw_readout(self, painter: QtGui.QPainter, frame: FrameSnapshot) -> None:
        lines = format_readout(frame)
        if not lines or frame.pointer is None:
            return
        x, y = frame.pointer
        metrics = painter.fontMetrics()
        line_h = metrics.height()
        box_w = max(metrics.horizontalAdvance(line) for line in lines) + 8
        box_h = line_h * len(lines) + 6
        left = min(x + 10, self.width() - box_w)
        top = min(y + 10, self.height() - box_h)
        painter.fillRect(QtCore.QRectF(left, top, box_w, box_h), QtGui.QColor(0, 0, 0, 180))
        for i, line in enumerate(lines):
            painter.setPen(LABEL if i == 0 else DELTA_TEXT)
            painter.drawText(QtCore.QPointF(left + 4, top + 3 + metrics.ascent() + i * line_h), line)


__all__ = ["ScopeCanvas", "format_readout", "format_time_label", "format_voltage_label"]
