"""
Diagram data models.

These models hold the editable diagram: shapes placed on the canvas
and the directional connections anchored to their edges.

Shapes are a tagged variant: one ShapeModel carries a ShapeType tag
plus the attributes specific to each kind. Everything is referenced
by stable id so deletions are simple table-entry removals.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import logging
import uuid

logger = logging.getLogger(__name__)


def _generate_id() -> str:
    """Generate a short unique ID."""
    return str(uuid.uuid4())[:8]


class ShapeType(Enum):
    """Kinds of shapes that can be placed on the canvas."""
    BOX = "box"
    ELLIPSE = "ellipse"
    TEXT = "text"


class Edge(Enum):
    """Named attachment sides of a shape."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> "Edge":
        return _OPPOSITE_EDGES[self]


_OPPOSITE_EDGES = {
    Edge.TOP: Edge.BOTTOM,
    Edge.BOTTOM: Edge.TOP,
    Edge.LEFT: Edge.RIGHT,
    Edge.RIGHT: Edge.LEFT,
}


class Direction(Enum):
    """
    Arrow direction of a connection.

    FORWARD points at the "to" anchor, BACKWARD at the "from" anchor.
    """
    FORWARD = "forward"
    BACKWARD = "backward"
    BOTH = "both"
    NONE = "none"


# Default appearance, matches ShapeDefaults in the settings manager
DEFAULT_COLOR = "#667eea"
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_BOX_SIZE = 80.0
DEFAULT_ELLIPSE_RADIUS = 40.0
DEFAULT_FONT_SIZE = 20.0
DEFAULT_TEXT = "Text"


@dataclass
class Point:
    """2D point in world (or screen) space."""
    x: float = 0.0
    y: float = 0.0

    def to_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass
class Bounds:
    """Axis-aligned rectangle."""
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def union(self, other: "Bounds") -> "Bounds":
        """Smallest rectangle covering both."""
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        right = max(self.right, other.right)
        bottom = max(self.bottom, other.bottom)
        return Bounds(left, top, right - left, bottom - top)

    def intersection_area(self, other: "Bounds") -> float:
        overlap_w = min(self.right, other.right) - max(self.x, other.x)
        overlap_h = min(self.bottom, other.bottom) - max(self.y, other.y)
        if overlap_w <= 0 or overlap_h <= 0:
            return 0.0
        return overlap_w * overlap_h

    def expanded(self, padding: float) -> "Bounds":
        return Bounds(
            self.x - padding,
            self.y - padding,
            self.width + 2 * padding,
            self.height + 2 * padding,
        )


@dataclass
class ShapeModel:
    """
    A shape on the diagram (box, ellipse or text label).

    Attributes:
        id: Unique identifier
        shape_type: Kind of shape (BOX, ELLIPSE, TEXT)
        x, y: World-space top-left corner of the shape's bounding box
        color: Fill color
        text_color: Label/text color
        label: Optional label text (the text itself for TEXT shapes)

    Type-specific attributes:
        Box: width, height, group_id, seam_edges
        Ellipse: radius_x, radius_y
        Text: font_size (extent is measured from the text)
    """
    id: str = field(default_factory=_generate_id)
    shape_type: ShapeType = ShapeType.BOX
    x: float = 0.0
    y: float = 0.0
    color: str = DEFAULT_COLOR
    text_color: str = DEFAULT_TEXT_COLOR
    label: str = ""

    # Box-specific properties
    width: float = DEFAULT_BOX_SIZE
    height: float = DEFAULT_BOX_SIZE
    group_id: Optional[str] = None
    seam_edges: set[Edge] = field(default_factory=set)

    # Ellipse-specific properties
    radius_x: float = DEFAULT_ELLIPSE_RADIUS
    radius_y: float = DEFAULT_ELLIPSE_RADIUS

    # Text-specific properties
    font_size: float = DEFAULT_FONT_SIZE

    def __post_init__(self):
        if self.shape_type == ShapeType.TEXT and not self.label:
            self.label = DEFAULT_TEXT

    @property
    def is_box(self) -> bool:
        return self.shape_type == ShapeType.BOX

    @property
    def has_edges(self) -> bool:
        """Text labels have no connectable edges."""
        return self.shape_type in (ShapeType.BOX, ShapeType.ELLIPSE)

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def move_to(self, x: float, y: float) -> None:
        self.x = x
        self.y = y

    def is_seam_edge(self, edge: Edge) -> bool:
        return edge in self.seam_edges


@dataclass
class ConnectionModel:
    """
    A directional connector between two shape edges.

    Attributes:
        id: Unique identifier
        from_shape_id / from_edge: First anchor
        to_shape_id / to_edge: Second anchor
        direction: Arrow direction
        color: Line color
    """
    id: str = field(default_factory=_generate_id)
    from_shape_id: str = ""
    from_edge: Edge = Edge.RIGHT
    to_shape_id: str = ""
    to_edge: Edge = Edge.LEFT
    direction: Direction = Direction.FORWARD
    color: str = DEFAULT_COLOR

    @property
    def anchors(self) -> tuple[tuple[str, Edge], tuple[str, Edge]]:
        return ((self.from_shape_id, self.from_edge), (self.to_shape_id, self.to_edge))

    def references(self, shape_id: str) -> bool:
        return self.from_shape_id == shape_id or self.to_shape_id == shape_id

    def uses_edge(self, shape_id: str, edge: Edge) -> bool:
        return (shape_id, edge) in self.anchors


@dataclass
class DiagramModel:
    """
    Root model containing every shape and connection.

    Dict insertion order is the drawing (z) order.
    """
    shapes: dict[str, ShapeModel] = field(default_factory=dict)
    connections: dict[str, ConnectionModel] = field(default_factory=dict)

    # Shapes

    def add_shape(self, shape: ShapeModel) -> ShapeModel:
        """Add an existing shape to the diagram."""
        self.shapes[shape.id] = shape
        logger.debug(f"Added {shape.shape_type.value} {shape.id} at ({shape.x}, {shape.y})")
        return shape

    def create_shape(self, shape_type: ShapeType, x: float, y: float, **kwargs) -> ShapeModel:
        """Create and add a new shape."""
        return self.add_shape(ShapeModel(shape_type=shape_type, x=x, y=y, **kwargs))

    def get_shape(self, shape_id: Optional[str]) -> Optional[ShapeModel]:
        """Get a shape by ID."""
        if shape_id is None:
            return None
        return self.shapes.get(shape_id)

    def remove_shape(self, shape_id: str) -> Optional[ShapeModel]:
        """Remove a shape and all connections referencing it."""
        if shape_id not in self.shapes:
            return None

        for conn in self.connections_for_shape(shape_id):
            self.remove_connection(conn.id)

        shape = self.shapes.pop(shape_id)

        # A group with a single member left is no longer a group
        if shape.group_id:
            remaining = self.group_members(shape.group_id)
            if len(remaining) < 2:
                for member in remaining:
                    member.group_id = None

        logger.debug(f"Removed {shape.shape_type.value} {shape_id}")
        return shape

    # Connections

    def get_connection(self, connection_id: Optional[str]) -> Optional[ConnectionModel]:
        """Get a connection by ID."""
        if connection_id is None:
            return None
        return self.connections.get(connection_id)

    def connections_for_shape(self, shape_id: str) -> list[ConnectionModel]:
        """All connections that reference a shape."""
        return [c for c in self.connections.values() if c.references(shape_id)]

    def connection_at_edge(self, shape_id: str, edge: Edge) -> Optional[ConnectionModel]:
        for conn in self.connections.values():
            if conn.uses_edge(shape_id, edge):
                return conn
        return None

    def is_edge_occupied(self, shape_id: str, edge: Edge) -> bool:
        return self.connection_at_edge(shape_id, edge) is not None

    def occupied_edges(self, shape_id: str) -> set[Edge]:
        """Edges of a shape that already host a connection."""
        edges = set()
        for conn in self.connections.values():
            if conn.from_shape_id == shape_id:
                edges.add(conn.from_edge)
            if conn.to_shape_id == shape_id:
                edges.add(conn.to_edge)
        return edges

    def can_anchor(self, shape_id: str, edge: Edge) -> bool:
        """Check if a new connection may attach to a shape edge."""
        shape = self.get_shape(shape_id)
        if not shape or not shape.has_edges:
            return False
        if shape.is_seam_edge(edge):
            return False
        return not self.is_edge_occupied(shape_id, edge)

    def add_connection(
        self,
        from_shape_id: str,
        from_edge: Edge,
        to_shape_id: str,
        to_edge: Edge,
        direction: Direction = Direction.FORWARD,
        color: str = DEFAULT_COLOR,
    ) -> Optional[ConnectionModel]:
        """
        Create a connection between two free edges.

        Returns None (and changes nothing) if either edge is a seam edge,
        already hosts a connection, or both anchors are the same edge.
        """
        if from_shape_id == to_shape_id and from_edge == to_edge:
            logger.debug(f"Rejected connection from {from_shape_id}.{from_edge.value} to itself")
            return None
        if not self.can_anchor(from_shape_id, from_edge) or not self.can_anchor(to_shape_id, to_edge):
            logger.debug(
                f"Rejected connection {from_shape_id}.{from_edge.value} -> "
                f"{to_shape_id}.{to_edge.value}: edge unavailable"
            )
            return None

        conn = ConnectionModel(
            from_shape_id=from_shape_id,
            from_edge=from_edge,
            to_shape_id=to_shape_id,
            to_edge=to_edge,
            direction=direction,
            color=color,
        )
        self.connections[conn.id] = conn
        logger.debug(f"Added connection {conn.id} ({direction.value})")
        return conn

    def link_seam(self, first_id: str, first_edge: Edge, second_id: str, second_edge: Edge,
                  color: str = DEFAULT_COLOR) -> Optional[ConnectionModel]:
        """Join the two sides of a split seam with a bidirectional connector."""
        if first_id not in self.shapes or second_id not in self.shapes:
            return None
        conn = ConnectionModel(
            from_shape_id=first_id,
            from_edge=first_edge,
            to_shape_id=second_id,
            to_edge=second_edge,
            direction=Direction.BOTH,
            color=color,
        )
        self.connections[conn.id] = conn
        return conn

    def set_direction(self, connection_id: str, direction: Direction) -> bool:
        """Change a connection's arrow direction."""
        conn = self.get_connection(connection_id)
        if not conn:
            return False
        conn.direction = direction
        return True

    def remove_connection(self, connection_id: str) -> Optional[ConnectionModel]:
        """Remove a connection. Referenced shapes are left alone."""
        return self.connections.pop(connection_id, None)

    # Groups

    def group_members(self, group_id: Optional[str]) -> list[ShapeModel]:
        """Boxes sharing a group id."""
        if not group_id:
            return []
        return [s for s in self.shapes.values() if s.is_box and s.group_id == group_id]

    def group_ids(self) -> set[str]:
        return {s.group_id for s in self.shapes.values() if s.group_id}

    def clear(self):
        """Remove all shapes and connections."""
        self.shapes.clear()
        self.connections.clear()
