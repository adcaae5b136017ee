"""
Grid snapping for placement and dragging.
"""

import math

from models.diagram import Point

DEFAULT_GRID_PITCH = 96.0


def snap(value: float, pitch: float = DEFAULT_GRID_PITCH) -> float:
    """
    Round a coordinate to the nearest grid line.

    Halves round up (toward +infinity). A non-positive pitch disables snapping.
    """
    if pitch <= 0:
        return value
    return math.floor(value / pitch + 0.5) * pitch


def snap_point(point: Point, pitch: float = DEFAULT_GRID_PITCH) -> Point:
    return Point(snap(point.x, pitch), snap(point.y, pitch))
