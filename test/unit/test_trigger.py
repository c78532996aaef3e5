"""
Unit tests for the edge trigger search.

The trigger level is a distance from the top of the 12-bit scale, so the raw
threshold is ``4096 - level``. The default edge is high-then-low; `invert`
selects low-then-high.
"""
from __future__ import annotations

import numpy as np
import pytest

from core.trigger import find_trigger_index, trigger_threshold


class TestThreshold:
    def test_threshold_is_measured_from_top_of_scale(self):
        assert trigger_threshold(2048) == 2048
        assert trigger_threshold(1000) == 3096
        assert trigger_threshold(0) == 4096


class TestFindTriggerIndex:
    def test_whole_buffer_window_finds_falling_edge(self):
        buf = [3000, 3000, 1000, 1000, 3000]
        assert find_trigger_index(buf, 5, 2048) == 1

    def test_inverted_finds_rising_edge(self):
        buf = [3000, 3000, 1000, 1000, 3000]
        assert find_trigger_index(buf, 5, 2048, invert=True) == 3

    def test_no_crossing_falls_back_to_window_start(self):
        buf = [1000] * 10
        assert find_trigger_index(buf, 4, 2048) == 6

    def test_no_crossing_with_window_wider_than_buffer(self):
        assert find_trigger_index([1000] * 10, 25, 2048) == 0

    def test_crossings_past_window_start_are_ignored(self):
        buf = [3000] * 20
        buf[9] = 1000  # falling edge at 8
        buf[18] = 1000  # falling edge at 17, too late to fill the window
        assert find_trigger_index(buf, 5, 2048) == 8

    def test_crossing_at_window_start_is_found(self):
        buf = [3000] * 20
        buf[16] = 1000  # falling edge at 15 == n - w
        assert find_trigger_index(buf, 5, 2048) == 15

    def test_most_recent_crossing_wins(self):
        buf = [3000, 1000, 3000, 1000, 3000, 1000, 3000, 3000]
        assert find_trigger_index(buf, 2, 2048) == 4

    def test_level_shifts_threshold(self):
        buf = [3500, 3500, 3000, 3000]
        assert find_trigger_index(buf, 2, 1000) == 1
        # 3000 is above 2048 so there is no crossing at the default level.
        assert find_trigger_index(buf, 2, 2048) == 2

    def test_touching_the_threshold_is_not_a_crossing(self):
        assert find_trigger_index([3000, 2048, 1000], 3, 2048) == 0

    def test_tiny_buffers(self):
        assert find_trigger_index([], 10, 2048) == 0
        assert find_trigger_index([4000], 10, 2048) == 0
        assert find_trigger_index([4000, 10], 0, 2048) == 0

    def test_numpy_input_matches_list_input(self):
        buf = [3000, 1000, 3000, 1000, 3000, 3000]
        arr = np.array(buf, dtype=np.uint16)
        assert find_trigger_index(arr, 3, 2048) == find_trigger_index(buf, 3, 2048)

    def test_negative_width_rejected(self):
        with pytest.raises(ValueError):
            find_trigger_index([0, 0, 0], -1, 2048)
