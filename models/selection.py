"""
Selection state and lasso polygons.
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from .diagram import Point


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """
    Even-odd ray casting test.

    Polygons with fewer than 3 vertices contain nothing.
    """
    if len(polygon) < 3:
        return False
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y
        if (yi > point.y) != (yj > point.y):
            cross_x = (xj - xi) * (point.y - yi) / (yj - yi) + xi
            if point.x < cross_x:
                inside = not inside
        j = i
    return inside


@dataclass
class LassoFrame:
    """A closed lasso polygon kept after selection so it can be dragged."""
    points: list[Point] = field(default_factory=list)

    def contains(self, point: Point) -> bool:
        return point_in_polygon(point, self.points)

    def translate(self, dx: float, dy: float) -> None:
        for p in self.points:
            p.x += dx
            p.y += dy


@dataclass
class SelectionModel:
    """
    Two independent selection sets: shapes and connections.

    `toggle=True` adds or removes one member (modifier-held click);
    otherwise the set is cleared and replaced.
    """
    shape_ids: set[str] = field(default_factory=set)
    connection_ids: set[str] = field(default_factory=set)

    def select_shape(self, shape_id: str, toggle: bool = False) -> None:
        _select(self.shape_ids, shape_id, toggle)

    def select_connection(self, connection_id: str, toggle: bool = False) -> None:
        _select(self.connection_ids, connection_id, toggle)

    def add_shape(self, shape_id: str, toggle: bool = False) -> None:
        """Add without clearing others (lasso accumulation)."""
        if toggle:
            _toggle(self.shape_ids, shape_id)
        else:
            self.shape_ids.add(shape_id)

    def add_connection(self, connection_id: str, toggle: bool = False) -> None:
        if toggle:
            _toggle(self.connection_ids, connection_id)
        else:
            self.connection_ids.add(connection_id)

    def discard_shape(self, shape_id: str) -> None:
        self.shape_ids.discard(shape_id)

    def discard_connection(self, connection_id: str) -> None:
        self.connection_ids.discard(connection_id)

    def clear_shapes(self) -> None:
        self.shape_ids.clear()

    def clear_connections(self) -> None:
        self.connection_ids.clear()

    def clear(self) -> None:
        self.shape_ids.clear()
        self.connection_ids.clear()

    def is_empty(self) -> bool:
        return not self.shape_ids and not self.connection_ids

    def single_shape_id(self) -> Optional[str]:
        """The selected shape id when exactly one shape is selected."""
        if len(self.shape_ids) == 1:
            return next(iter(self.shape_ids))
        return None

    def single_connection_id(self) -> Optional[str]:
        if len(self.connection_ids) == 1:
            return next(iter(self.connection_ids))
        return None


def _toggle(ids: set[str], item_id: str) -> None:
    if item_id in ids:
        ids.remove(item_id)
    else:
        ids.add(item_id)


def _select(ids: set[str], item_id: str, toggle: bool) -> None:
    if toggle:
        _toggle(ids, item_id)
    else:
        ids.clear()
        ids.add(item_id)
