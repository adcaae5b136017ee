"""
Unit tests for grid snapping.
"""

import pytest
from models.diagram import Point
from services.grid_snap import DEFAULT_GRID_PITCH, snap, snap_point


class TestSnap:
    """Tests for snapping coordinates to the grid."""

    def test_default_pitch(self):
        assert DEFAULT_GRID_PITCH == 96

    @pytest.mark.parametrize("value,expected", [
        (0, 0),
        (47, 0),
        (48, 96),
        (100, 96),
        (150, 192),
        (-47, 0),
        (-49, -96),
    ])
    def test_rounds_to_nearest_line(self, value, expected):
        assert snap(value) == expected

    def test_halves_round_up(self):
        """Exact halves go toward +infinity, also for negatives."""
        assert snap(5, 10) == 10
        assert snap(-5, 10) == 0
        assert snap(-15, 10) == -10

    def test_non_positive_pitch_disables(self):
        assert snap(37.5, 0) == 37.5
        assert snap(37.5, -10) == 37.5

    def test_snap_point(self):
        assert snap_point(Point(50, 140)) == Point(96, 96)
