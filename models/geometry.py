"""
Geometry and hit-testing for diagram shapes.

Every query is a pure function of a shape plus a query point and
dispatches on the shape's ShapeType tag. Out-of-range or degenerate
input yields None/False, never an exception.

All coordinates are world coordinates.
"""

import math
from typing import Callable, Iterable, Optional

from .diagram import (
    Bounds,
    ConnectionModel,
    DiagramModel,
    Edge,
    Point,
    ShapeModel,
    ShapeType,
)


# Hit-test constants (defaults of HitTestSettings)
EDGE_TOLERANCE = 10.0
CONNECTION_TOLERANCE = 10.0
ENDPOINT_EXCLUSION = 15.0
CONNECTION_PADDING = 20.0
TEXT_MARGIN = 2.0
HANDLE_PADDING = 12.0
HANDLE_RADIUS = 6.0

# Average glyph width as a fraction of the font size
TEXT_WIDTH_FACTOR = 0.55

BOX_HANDLES = ("nw", "n", "ne", "e", "se", "s", "sw", "w")
CORNER_HANDLES = ("nw", "ne", "se", "sw")


def _approximate_text_width(text: str, font_size: float) -> float:
    return len(text) * font_size * TEXT_WIDTH_FACTOR


_text_measurer: Callable[[str, float], float] = _approximate_text_width


def set_text_measurer(measurer: Optional[Callable[[str, float], float]]) -> None:
    """
    Install a function returning the rendered width of a text.

    The front end installs one backed by real font metrics.
    Passing None restores the built-in approximation.
    """
    global _text_measurer
    _text_measurer = measurer or _approximate_text_width


def measure_text(text: str, font_size: float) -> float:
    """Rendered width of a text at a font size."""
    if not text or font_size <= 0:
        return 0.0
    return max(0.0, _text_measurer(text, font_size))


# =============================================================================
# Bounds and containment
# =============================================================================

def get_bounds(shape: ShapeModel) -> Bounds:
    """Bounding rectangle of a shape."""
    if shape.shape_type == ShapeType.ELLIPSE:
        return Bounds(shape.x, shape.y, shape.radius_x * 2, shape.radius_y * 2)
    if shape.shape_type == ShapeType.TEXT:
        return Bounds(shape.x, shape.y, measure_text(shape.label, shape.font_size), shape.font_size)
    return Bounds(shape.x, shape.y, shape.width, shape.height)


def get_center(shape: ShapeModel) -> Point:
    return get_bounds(shape).center


def contains(shape: ShapeModel, point: Point) -> bool:
    """Check if a point lies inside a shape."""
    if shape.shape_type == ShapeType.ELLIPSE:
        if shape.radius_x <= 0 or shape.radius_y <= 0:
            return False
        center = get_center(shape)
        nx = (point.x - center.x) / shape.radius_x
        ny = (point.y - center.y) / shape.radius_y
        return nx * nx + ny * ny <= 1.0

    bounds = get_bounds(shape)
    if shape.shape_type == ShapeType.TEXT:
        bounds = bounds.expanded(TEXT_MARGIN)
    return bounds.x <= point.x <= bounds.right and bounds.y <= point.y <= bounds.bottom


# =============================================================================
# Edges
# =============================================================================

def get_edge_point(shape: ShapeModel, edge: Edge) -> Optional[Point]:
    """Attachment point of an edge: side midpoint or cardinal point."""
    if not shape.has_edges:
        return None
    bounds = get_bounds(shape)
    center = bounds.center
    if edge == Edge.TOP:
        return Point(center.x, bounds.y)
    if edge == Edge.BOTTOM:
        return Point(center.x, bounds.bottom)
    if edge == Edge.LEFT:
        return Point(bounds.x, center.y)
    if edge == Edge.RIGHT:
        return Point(bounds.right, center.y)
    return None


def _sector_edge(dx: float, dy: float) -> Edge:
    """Map a direction to the edge owning its 90 degree sector (y grows down)."""
    angle = (math.degrees(math.atan2(dy, dx)) + 360) % 360
    if 45 <= angle < 135:
        return Edge.BOTTOM
    if 135 <= angle < 225:
        return Edge.LEFT
    if 225 <= angle < 315:
        return Edge.TOP
    return Edge.RIGHT


def _available(shape: ShapeModel, edge: Optional[Edge], blocked: Iterable[Edge]) -> Optional[Edge]:
    if edge is None or shape.is_seam_edge(edge) or edge in set(blocked):
        return None
    return edge


def get_edge_at(
    shape: ShapeModel,
    point: Point,
    tolerance: float = EDGE_TOLERANCE,
    blocked: Iterable[Edge] = (),
) -> Optional[Edge]:
    """
    Find the edge of a shape near a point.

    Args:
        shape: Shape to test
        point: World-space point
        tolerance: Maximum distance to the side/outline
        blocked: Edges that already host a connection

    Returns:
        The nearest matching edge, or None when nothing matches or the
        nearest match is a seam edge or blocked.
    """
    if shape.shape_type == ShapeType.BOX:
        if shape.width <= 0 or shape.height <= 0:
            return None
        center = get_center(shape)
        dx = point.x - center.x
        dy = point.y - center.y
        candidates = []
        if abs(dy) < shape.height / 2:
            candidates.append((abs(point.x - shape.x), Edge.LEFT))
            candidates.append((abs(point.x - (shape.x + shape.width)), Edge.RIGHT))
        if abs(dx) < shape.width / 2:
            candidates.append((abs(point.y - shape.y), Edge.TOP))
            candidates.append((abs(point.y - (shape.y + shape.height)), Edge.BOTTOM))
        matching = [c for c in candidates if c[0] < tolerance]
        if not matching:
            return None
        nearest = min(matching, key=lambda c: c[0])[1]
        return _available(shape, nearest, blocked)

    if shape.shape_type == ShapeType.ELLIPSE:
        if shape.radius_x <= 0 or shape.radius_y <= 0:
            return None
        center = get_center(shape)
        dx = point.x - center.x
        dy = point.y - center.y
        distance = math.hypot(dx / shape.radius_x, dy / shape.radius_y)
        # Normalized distance scaled back to world units along the short axis
        if abs(distance - 1.0) * min(shape.radius_x, shape.radius_y) >= tolerance:
            return None
        return _available(shape, _sector_edge(dx, dy), blocked)

    return None


def get_best_edge_for_connection(
    shape: ShapeModel,
    point: Point,
    padding: float = CONNECTION_PADDING,
    blocked: Iterable[Edge] = (),
) -> Optional[Edge]:
    """
    Pick the edge to anchor a connection on while one is being created.

    The padded shape is split into four non-overlapping zones: quadrants
    around the center for boxes, 90 degree sectors for ellipses.
    """
    if shape.shape_type == ShapeType.BOX:
        padded = get_bounds(shape).expanded(padding)
        if not (padded.x <= point.x <= padded.right and padded.y <= point.y <= padded.bottom):
            return None
        center = get_center(shape)
        dx = point.x - center.x
        dy = point.y - center.y
        if dx <= 0 and dy <= 0:
            edge = Edge.TOP
        elif dx > 0 and dy <= 0:
            edge = Edge.RIGHT
        elif dx <= 0 and dy > 0:
            edge = Edge.LEFT
        else:
            edge = Edge.BOTTOM
        return _available(shape, edge, blocked)

    if shape.shape_type == ShapeType.ELLIPSE:
        rx = shape.radius_x + padding
        ry = shape.radius_y + padding
        if rx <= 0 or ry <= 0:
            return None
        center = get_center(shape)
        dx = point.x - center.x
        dy = point.y - center.y
        if (dx / rx) ** 2 + (dy / ry) ** 2 > 1.0:
            return None
        return _available(shape, _sector_edge(dx, dy), blocked)

    return None


# =============================================================================
# Resize handles
# =============================================================================

def get_resize_handles(shape: ShapeModel, padding: float = HANDLE_PADDING) -> dict[str, Point]:
    """
    Resize handle positions keyed by compass name.

    Handles sit on the bounding rectangle grown by `padding`, outside
    the zones used for edge selection.
    """
    box = get_bounds(shape).expanded(padding)
    center = box.center
    positions = {
        "nw": Point(box.x, box.y),
        "n": Point(center.x, box.y),
        "ne": Point(box.right, box.y),
        "e": Point(box.right, center.y),
        "se": Point(box.right, box.bottom),
        "s": Point(center.x, box.bottom),
        "sw": Point(box.x, box.bottom),
        "w": Point(box.x, center.y),
    }
    names = CORNER_HANDLES if shape.shape_type == ShapeType.TEXT else BOX_HANDLES
    return {name: positions[name] for name in names}


def handle_at(
    shape: ShapeModel,
    point: Point,
    radius: float = HANDLE_RADIUS,
    padding: float = HANDLE_PADDING,
) -> Optional[str]:
    """Name of the resize handle under a point, if any."""
    best = None
    best_distance = radius
    for name, pos in get_resize_handles(shape, padding).items():
        distance = math.hypot(point.x - pos.x, point.y - pos.y)
        if distance <= best_distance:
            best = name
            best_distance = distance
    return best


# =============================================================================
# Connections
# =============================================================================

def segment_distance(point: Point, start: Point, end: Point) -> float:
    """Shortest distance from a point to a line segment."""
    cx = end.x - start.x
    cy = end.y - start.y
    length_sq = cx * cx + cy * cy
    if length_sq == 0:
        return math.hypot(point.x - start.x, point.y - start.y)
    t = ((point.x - start.x) * cx + (point.y - start.y) * cy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point.x - (start.x + t * cx), point.y - (start.y + t * cy))


def connection_endpoints(
    diagram: DiagramModel, connection: ConnectionModel
) -> Optional[tuple[Point, Point]]:
    """World positions of both anchors, or None if a shape is gone."""
    source = diagram.get_shape(connection.from_shape_id)
    target = diagram.get_shape(connection.to_shape_id)
    if not source or not target:
        return None
    start = get_edge_point(source, connection.from_edge)
    end = get_edge_point(target, connection.to_edge)
    if start is None or end is None:
        return None
    return start, end


def connection_midpoint(diagram: DiagramModel, connection: ConnectionModel) -> Optional[Point]:
    endpoints = connection_endpoints(diagram, connection)
    if not endpoints:
        return None
    start, end = endpoints
    return Point((start.x + end.x) / 2, (start.y + end.y) / 2)


def connection_is_near(
    diagram: DiagramModel,
    connection: ConnectionModel,
    point: Point,
    tolerance: float = CONNECTION_TOLERANCE,
    endpoint_exclusion: float = ENDPOINT_EXCLUSION,
) -> bool:
    """
    Check if a point is close enough to a connector line to pick it.

    Points within `endpoint_exclusion` of either anchor never count, so
    clicks there fall through to edge selection on the shape.
    """
    endpoints = connection_endpoints(diagram, connection)
    if not endpoints:
        return False
    start, end = endpoints
    if math.hypot(point.x - start.x, point.y - start.y) < endpoint_exclusion:
        return False
    if math.hypot(point.x - end.x, point.y - end.y) < endpoint_exclusion:
        return False
    return segment_distance(point, start, end) <= tolerance
