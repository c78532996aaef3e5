"""
Unit tests for ViewTransform: domain <-> screen mapping, zoom and pan.

The canvas in most tests is 800x400 with 0.1 ms per point, so the unzoomed
time axis spans 80 ms and the voltage axis 0..3.3 V.
"""
from __future__ import annotations

import numpy as np
import pytest

from core.view_transform import ViewTransform, total_time_span_ms
from shared.models import ScopeConfig


@pytest.fixture
def view() -> ViewTransform:
    return ViewTransform(800, 400, ms_per_point=0.1, max_voltage=3.3)


class TestTimeSpan:
    def test_full_rate_span(self):
        assert total_time_span_ms(ScopeConfig.from_desired_rate(10_000), 4000) == pytest.approx(400.0)

    def test_decimated_span(self):
        # 100 Hz from 1 kHz hardware: 2000 min/max pairs of 10 ms each.
        assert total_time_span_ms(ScopeConfig.from_desired_rate(100), 4000) == pytest.approx(20_000.0)

    def test_configure_adopts_spacing_and_voltage(self):
        vt = ViewTransform(800, 400)
        vt.configure(ScopeConfig.from_desired_rate(10_000, atten=0), 4000)
        assert vt.ms_per_point == pytest.approx(0.1)
        assert vt.max_voltage == pytest.approx(0.95)


class TestMapping:
    def test_unzoomed_geometry(self, view):
        assert view.visible_points == 800
        assert view.total_time_ms == pytest.approx(80.0)

    def test_time_axis(self, view):
        assert view.time_to_x(40.0) == pytest.approx(400.0)
        assert view.x_to_time(400.0) == pytest.approx(40.0)

    def test_voltage_axis_is_flipped(self, view):
        assert view.volts_to_y(3.3) == pytest.approx(0.0)
        assert view.volts_to_y(0.0) == pytest.approx(400.0)
        assert view.y_to_volts(200.0) == pytest.approx(1.65)

    def test_vectorized_mapping(self, view):
        xs = view.time_to_x(np.array([0.0, 8.0, 80.0]))
        np.testing.assert_allclose(xs, [0.0, 80.0, 800.0])

    def test_degenerate_sizes_map_to_zero(self):
        vt = ViewTransform(0, 0, ms_per_point=0.1)
        assert vt.time_to_x(10.0) == 0.0
        assert vt.x_to_time(10.0) == 0.0
        assert vt.y_to_volts(10.0) == 0.0

    def test_round_trip_under_zoom_and_pan(self, view):
        view.zoom(-1, 123.0, 45.0)
        view.zoom(-1, 500.0, 300.0)
        view.pan(17.0, -9.0)
        for t in (0.0, 12.5, 79.0):
            assert view.x_to_time(view.time_to_x(t)) == pytest.approx(t)
        for v in (0.0, 1.2, 3.3):
            assert view.y_to_volts(view.volts_to_y(v)) == pytest.approx(v)

    def test_sample_to_screen_one_point_per_pixel(self, view):
        xs, ys = view.sample_to_screen(np.array([0, 2048, 4096], dtype=np.uint16))
        np.testing.assert_allclose(xs, [0.0, 1.0, 2.0])
        np.testing.assert_allclose(ys, [400.0, 200.0, 0.0])

    def test_visible_ranges(self, view):
        assert view.visible_time_range() == pytest.approx((0.0, 80.0))
        assert view.visible_voltage_range() == pytest.approx((0.0, 3.3))


class TestZoom:
    def test_zoom_in_keeps_cursor_fixed(self, view):
        t_before = view.x_to_time(400.0)
        v_before = view.y_to_volts(100.0)
        assert view.zoom(-1, 400.0, 100.0)
        assert view.scale == pytest.approx(1.1)
        assert view.offset_x == pytest.approx(-40.0)
        assert view.x_to_time(400.0) == pytest.approx(t_before)
        assert view.y_to_volts(100.0) == pytest.approx(v_before)

    def test_zoom_out_at_unity_snaps(self, view):
        assert view.zoom(+1, 400.0, 200.0)
        assert view.scale == 1.0
        assert view.offset_x == 0.0
        assert view.offset_y == 0.0

    def test_zoom_out_from_two_snaps_back_to_unity(self, view):
        view.state.scale = 2.0
        view.state.offset_x = -300.0
        view.state.offset_y = -120.0
        for _ in range(10):
            view.zoom(+1, 250.0, 80.0)
        assert view.scale == 1.0
        assert (view.offset_x, view.offset_y) == (0.0, 0.0)

    def test_zoom_past_maximum_is_rejected(self, view):
        view.state.scale = 49.0
        view.state.offset_x = -5.0
        assert not view.zoom(-1, 10.0, 10.0)
        assert view.scale == 49.0
        assert view.offset_x == -5.0

    def test_zero_delta_is_noop(self, view):
        assert not view.zoom(0, 10.0, 10.0)
        assert view.scale == 1.0


class TestPan:
    def test_pan_at_unity_is_noop(self, view):
        assert not view.pan(10.0, 10.0)
        assert (view.offset_x, view.offset_y) == (0.0, 0.0)

    def test_pan_when_zoomed(self, view):
        view.zoom(-1, 0.0, 0.0)
        assert view.pan(10.0, -4.0)
        assert view.offset_x == pytest.approx(10.0)
        assert view.offset_y == pytest.approx(-4.0)

    def test_reset(self, view):
        view.zoom(-1, 300.0, 300.0)
        view.pan(5.0, 5.0)
        view.reset()
        assert (view.scale, view.offset_x, view.offset_y) == (1.0, 0.0, 0.0)
