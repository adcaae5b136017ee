"""
Models package.

This package contains the data models of the diagram editor.

- Diagram data (ShapeModel, ConnectionModel, DiagramModel)
- Geometry and hit-testing (contains, get_edge_at, ...)
- Selection state and lasso polygons (SelectionModel, LassoFrame)
"""

from .diagram import (
    ShapeType,
    Edge,
    Direction,
    Point,
    Bounds,
    ShapeModel,
    ConnectionModel,
    DiagramModel,
    DEFAULT_COLOR,
    DEFAULT_TEXT_COLOR,
    DEFAULT_TEXT,
)
from .geometry import (
    contains,
    get_bounds,
    get_center,
    get_edge_point,
    get_edge_at,
    get_best_edge_for_connection,
    get_resize_handles,
    handle_at,
    segment_distance,
    connection_endpoints,
    connection_midpoint,
    connection_is_near,
    measure_text,
    set_text_measurer,
)
from .selection import (
    SelectionModel,
    LassoFrame,
    point_in_polygon,
)


__all__ = [
    # Diagram
    "ShapeType",
    "Edge",
    "Direction",
    "Point",
    "Bounds",
    "ShapeModel",
    "ConnectionModel",
    "DiagramModel",
    "DEFAULT_COLOR",
    "DEFAULT_TEXT_COLOR",
    "DEFAULT_TEXT",
    # Geometry
    "contains",
    "get_bounds",
    "get_center",
    "get_edge_point",
    "get_edge_at",
    "get_best_edge_for_connection",
    "get_resize_handles",
    "handle_at",
    "segment_distance",
    "connection_endpoints",
    "connection_midpoint",
    "connection_is_near",
    "measure_text",
    "set_text_measurer",
    # Selection
    "SelectionModel",
    "LassoFrame",
    "point_in_polygon",
]
