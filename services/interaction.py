"""
Interaction state machine for the diagram editor.

InteractionController is the editing session: it owns the diagram,
the selection, the view offset and the one active gesture, and turns
pointer/keyboard input into model mutations.

Gestures are explicit states entered only from IDLE:

    IDLE -> PANNING -> IDLE
    IDLE -> DRAGGING_SELECTION -> IDLE
    IDLE -> RESIZING -> IDLE
    IDLE -> LASSO_DRAWING -> IDLE
    IDLE -> PLACING_SHAPE -> IDLE
    IDLE -> EDGE_SELECTING_FIRST -> AWAITING_DIRECTION -> IDLE

Handlers take screen coordinates; the model lives in world coordinates
(world = screen - view offset). Drag and resize are applied on every
move and are not rolled back if the gesture is cancelled.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from models.diagram import (
    DEFAULT_TEXT,
    Bounds,
    ConnectionModel,
    DiagramModel,
    Direction,
    Edge,
    Point,
    ShapeModel,
    ShapeType,
)
from models.geometry import (
    connection_is_near,
    connection_midpoint,
    contains,
    get_best_edge_for_connection,
    get_bounds,
    get_edge_at,
    get_edge_point,
    get_resize_handles,
    handle_at,
    measure_text,
)
from models.selection import LassoFrame, SelectionModel, point_in_polygon
from services.box_split import apply_bounds, resize_bounds, resize_group, split_box
from services.grid_snap import snap
from services.settings_manager import AppSettings

logger = logging.getLogger(__name__)


class GestureState(Enum):
    """The mutually exclusive interaction modes."""
    IDLE = auto()
    PANNING = auto()
    DRAGGING_SELECTION = auto()
    RESIZING = auto()
    EDGE_SELECTING_FIRST = auto()
    AWAITING_DIRECTION = auto()
    LASSO_DRAWING = auto()
    PLACING_SHAPE = auto()


class Tool(Enum):
    """Toolbar tools."""
    SELECT = auto()
    LASSO = auto()
    TEXT = auto()


class PointerButton(Enum):
    PRIMARY = auto()
    MIDDLE = auto()
    SECONDARY = auto()


# Hit-test priority for shape bodies, topmost first
_BODY_ORDER = (ShapeType.TEXT, ShapeType.ELLIPSE, ShapeType.BOX)
# Edge lookup order
_EDGE_ORDER = (ShapeType.BOX, ShapeType.ELLIPSE)


@dataclass(frozen=True)
class EdgeAnchor:
    """A shape edge picked as one end of a connection."""
    shape_id: str
    edge: Edge


@dataclass
class Gesture:
    """Data of the active gesture. A fresh Gesture() is IDLE."""
    state: GestureState = GestureState.IDLE

    # Pointer position at gesture start
    start_screen: Point = field(default_factory=Point)
    start_world: Point = field(default_factory=Point)

    # Panning
    start_offset: Point = field(default_factory=Point)

    # Dragging
    drag_anchor_id: Optional[str] = None
    start_positions: dict[str, Point] = field(default_factory=dict)
    applied_delta: Point = field(default_factory=Point)

    # Resizing
    shape_id: Optional[str] = None
    handle: Optional[str] = None
    start_bounds: Bounds = field(default_factory=Bounds)
    start_font_size: float = 0.0
    group_start_bounds: dict[str, Bounds] = field(default_factory=dict)

    # Lasso drawing
    lasso_points: list[Point] = field(default_factory=list)

    # Edge selection
    anchor: Optional[EdgeAnchor] = None
    target: Optional[EdgeAnchor] = None
    preview_end: Optional[Point] = None


@dataclass(frozen=True)
class EditorSnapshot:
    """Read-only view of the editor for rendering."""
    shapes: tuple
    connections: tuple
    selected_shape_ids: frozenset
    selected_connection_ids: frozenset
    state: GestureState
    tool: Tool
    view_offset: Point
    pending_anchor: Optional[EdgeAnchor]
    target_anchor: Optional[EdgeAnchor]
    preview_start: Optional[Point]
    preview_end: Optional[Point]
    lasso_points: tuple
    lasso_frame: tuple
    resize_handles: dict
    hover_edge: Optional[EdgeAnchor]
    cursor: str
    editing_shape_id: Optional[str]


class InteractionController:
    """
    Editing session for one diagram.

    Every input handler runs to completion and leaves the controller
    in a consistent state; invalid input results in no change.
    """

    def __init__(self, diagram: Optional[DiagramModel] = None,
                 settings: Optional[AppSettings] = None):
        self.diagram = diagram if diagram is not None else DiagramModel()
        self.settings = settings or AppSettings()
        self.selection = SelectionModel()
        self.view_offset = Point()
        self.tool = Tool.SELECT
        self.armed_shape_type: Optional[ShapeType] = None
        self.current_color = self.settings.shapes.color
        self.gesture = Gesture()
        self.lasso_frame: Optional[LassoFrame] = None
        self.editing_shape_id: Optional[str] = None
        self.hover_edge: Optional[EdgeAnchor] = None
        self.cursor = "default"

    # =========================================================================
    # State helpers
    # =========================================================================

    @property
    def state(self) -> GestureState:
        return self.gesture.state

    @property
    def pending_anchor(self) -> Optional[EdgeAnchor]:
        return self.gesture.anchor

    def _enter(self, state: GestureState, **data) -> None:
        logger.debug(f"Gesture {self.gesture.state.name} -> {state.name}")
        self.gesture = Gesture(state=state, **data)

    def _return_to_idle(self) -> None:
        if self.gesture.state != GestureState.IDLE:
            logger.debug(f"Gesture {self.gesture.state.name} -> IDLE")
        self.gesture = Gesture()

    def to_world(self, x: float, y: float) -> Point:
        return Point(x - self.view_offset.x, y - self.view_offset.y)

    def _snap(self, value: float) -> float:
        grid = self.settings.grid
        if not grid.snap_to_grid:
            return value
        return snap(value, grid.pitch)

    # =========================================================================
    # Hit-testing against the whole diagram
    # =========================================================================

    def shape_at(self, world: Point) -> Optional[ShapeModel]:
        """Topmost shape whose body contains a point."""
        shapes = list(self.diagram.shapes.values())
        for shape_type in _BODY_ORDER:
            for shape in reversed(shapes):
                if shape.shape_type == shape_type and contains(shape, world):
                    return shape
        return None

    def connection_at(self, world: Point) -> Optional[ConnectionModel]:
        hit = self.settings.hit_test
        for conn in self.diagram.connections.values():
            if connection_is_near(self.diagram, conn, world,
                                  hit.connection_tolerance, hit.endpoint_exclusion):
                return conn
        return None

    def edge_at(self, world: Point, connecting: bool = False) -> Optional[EdgeAnchor]:
        """
        Find a connectable edge under a point.

        While a connection is being created (`connecting`) the larger
        non-overlapping zones are used; otherwise the point must be
        inside the shape and near one of its sides.
        """
        hit = self.settings.hit_test
        shapes = list(self.diagram.shapes.values())
        for shape_type in _EDGE_ORDER:
            for shape in shapes:
                if shape.shape_type != shape_type:
                    continue
                blocked = self.diagram.occupied_edges(shape.id)
                if connecting:
                    edge = get_best_edge_for_connection(
                        shape, world, hit.connection_padding, blocked)
                elif contains(shape, world):
                    edge = get_edge_at(shape, world, hit.edge_tolerance, blocked)
                else:
                    edge = None
                if edge:
                    return EdgeAnchor(shape.id, edge)
        return None

    def _resize_handle_at(self, world: Point) -> Optional[str]:
        shape = self.diagram.get_shape(self.selection.single_shape_id())
        if not shape:
            return None
        hit = self.settings.hit_test
        return handle_at(shape, world, hit.handle_radius, hit.handle_padding)

    # =========================================================================
    # Pointer input
    # =========================================================================

    def pointer_down(self, x: float, y: float,
                     button: PointerButton = PointerButton.PRIMARY,
                     modifier: bool = False) -> None:
        """
        Handle a pointer press.

        Args:
            x, y: Screen coordinates
            button: Which button was pressed
            modifier: Whether a multi-select modifier (shift/ctrl/meta) is held
        """
        world = self.to_world(x, y)
        screen = Point(x, y)

        if button == PointerButton.SECONDARY:
            self.delete_at(x, y)
            return

        if self.state == GestureState.AWAITING_DIRECTION:
            logger.debug("Pending connection abandoned")
            self._return_to_idle()

        if self.state not in (GestureState.IDLE, GestureState.EDGE_SELECTING_FIRST):
            return

        if button == PointerButton.MIDDLE:
            self._return_to_idle()
            self._start_panning(screen)
            return

        if self.armed_shape_type is not None or self.tool == Tool.TEXT:
            shape_type = self.armed_shape_type or ShapeType.TEXT
            self._return_to_idle()
            self._place(shape_type, world)
            return

        if self.tool == Tool.LASSO:
            self._lasso_down(world, modifier)
            return

        self._select_down(screen, world, modifier)

    def _select_down(self, screen: Point, world: Point, modifier: bool) -> None:
        connecting = self.state == GestureState.EDGE_SELECTING_FIRST

        if not connecting:
            handle = self._resize_handle_at(world)
            if handle:
                self._start_resizing(self.selection.single_shape_id(), handle, world)
                return

        conn = self.connection_at(world)
        if conn:
            self._return_to_idle()
            if modifier:
                self.selection.select_connection(conn.id, toggle=True)
            else:
                self.selection.select_connection(conn.id)
                self.selection.clear_shapes()
            return

        anchor = self.edge_at(world, connecting=connecting)
        if anchor:
            self.selection.clear_shapes()
            self._edge_clicked(anchor, world)
            return

        if connecting:
            logger.debug("Pending anchor cancelled")
            self._return_to_idle()

        if (self.lasso_frame and self.selection.shape_ids
                and self.lasso_frame.contains(world)):
            self._start_dragging(world, None)
            return

        shape = self.shape_at(world)
        if shape:
            if not modifier:
                self.selection.clear_connections()
            self.selection.select_shape(shape.id, toggle=modifier)
            self._start_dragging(world, shape.id)
            return

        if not modifier:
            self.selection.clear()
        self._start_panning(screen)

    def _edge_clicked(self, anchor: EdgeAnchor, world: Point) -> None:
        pending = self.gesture.anchor
        if pending is None:
            self._enter(GestureState.EDGE_SELECTING_FIRST, anchor=anchor, preview_end=world)
            return
        if anchor == pending:
            # Same edge again: restart from it
            self.gesture.anchor = anchor
            self.gesture.preview_end = world
            return
        shape = self.diagram.get_shape(anchor.shape_id)
        self.gesture.state = GestureState.AWAITING_DIRECTION
        self.gesture.target = anchor
        self.gesture.preview_end = get_edge_point(shape, anchor.edge)
        logger.debug(f"Awaiting direction for {pending} -> {anchor}")

    def pointer_move(self, x: float, y: float) -> None:
        """Handle pointer motion (screen coordinates)."""
        world = self.to_world(x, y)
        state = self.state

        if state == GestureState.PANNING:
            g = self.gesture
            self.view_offset = Point(
                g.start_offset.x + (x - g.start_screen.x),
                g.start_offset.y + (y - g.start_screen.y),
            )
        elif state == GestureState.DRAGGING_SELECTION:
            self._drag_to(world)
        elif state == GestureState.RESIZING:
            self._resize_to(world)
        elif state == GestureState.LASSO_DRAWING:
            self.gesture.lasso_points.append(world)
        elif state == GestureState.EDGE_SELECTING_FIRST:
            self.gesture.preview_end = world
            self._update_hover(world)
        elif state == GestureState.IDLE:
            self._update_hover(world)

    def pointer_up(self, x: float, y: float, modifier: bool = False) -> None:
        """Handle a pointer release (screen coordinates)."""
        state = self.state
        if state == GestureState.LASSO_DRAWING:
            self._finish_lasso(modifier)
        elif state in (GestureState.PANNING, GestureState.DRAGGING_SELECTION,
                       GestureState.RESIZING):
            self._return_to_idle()
        self._update_hover(self.to_world(x, y))

    def pointer_leave(self) -> None:
        """Pointer left the canvas: drop the active gesture, keep what was applied."""
        self.cancel()

    def cancel(self) -> None:
        """Return to IDLE from any gesture without reverting changes."""
        if self.state != GestureState.IDLE:
            logger.debug(f"Gesture {self.state.name} cancelled")
        self._return_to_idle()
        self.hover_edge = None

    def double_click(self, x: float, y: float) -> Optional[str]:
        """Begin editing the label of the shape under the pointer."""
        shape = self.shape_at(self.to_world(x, y))
        if not shape:
            return None
        self.selection.clear()
        self.selection.select_shape(shape.id)
        return self.begin_edit(shape.id)

    def _update_hover(self, world: Point) -> None:
        if self.tool == Tool.LASSO:
            self.hover_edge = None
            self.cursor = "crosshair"
            return
        if self.tool == Tool.TEXT:
            self.hover_edge = None
            self.cursor = "text"
            return
        connecting = self.state == GestureState.EDGE_SELECTING_FIRST
        self.hover_edge = self.edge_at(world, connecting=connecting)
        if self.hover_edge:
            self.cursor = "crosshair"
        elif self.connection_at(world):
            self.cursor = "pointer"
        elif self.shape_at(world):
            self.cursor = "grab"
        else:
            self.cursor = "default"

    # =========================================================================
    # Panning and dragging
    # =========================================================================

    def _start_panning(self, screen: Point) -> None:
        self._enter(GestureState.PANNING, start_screen=screen,
                    start_offset=Point(self.view_offset.x, self.view_offset.y))

    def _start_dragging(self, world: Point, grabbed_id: Optional[str]) -> None:
        ids = []
        for shape_id in self.selection.shape_ids:
            shape = self.diagram.get_shape(shape_id)
            if not shape:
                continue
            ids.append(shape.id)
            ids.extend(m.id for m in self.diagram.group_members(shape.group_id))
        if not ids:
            return

        start_positions = {}
        for shape_id in ids:
            shape = self.diagram.shapes[shape_id]
            start_positions[shape_id] = Point(shape.x, shape.y)

        if grabbed_id not in start_positions:
            # Snap relative to the top-left-most dragged shape
            grabbed_id = min(start_positions, key=lambda i: (start_positions[i].y,
                                                              start_positions[i].x))

        self._enter(GestureState.DRAGGING_SELECTION, start_world=world,
                    drag_anchor_id=grabbed_id, start_positions=start_positions)

    def _drag_to(self, world: Point) -> None:
        g = self.gesture
        anchor_start = g.start_positions.get(g.drag_anchor_id)
        if anchor_start is None:
            return
        dx = world.x - g.start_world.x
        dy = world.y - g.start_world.y

        # Snap the grabbed shape; everything else follows with the same delta
        dx = self._snap(anchor_start.x + dx) - anchor_start.x
        dy = self._snap(anchor_start.y + dy) - anchor_start.y

        for shape_id, start in g.start_positions.items():
            shape = self.diagram.get_shape(shape_id)
            if shape:
                shape.move_to(start.x + dx, start.y + dy)

        if self.lasso_frame:
            self.lasso_frame.translate(dx - g.applied_delta.x, dy - g.applied_delta.y)
        g.applied_delta = Point(dx, dy)

    # =========================================================================
    # Resizing
    # =========================================================================

    def _start_resizing(self, shape_id: str, handle: str, world: Point) -> None:
        shape = self.diagram.get_shape(shape_id)
        if not shape:
            return
        group_start = {}
        members = self.diagram.group_members(shape.group_id)
        if len(members) >= 2:
            group_start = {m.id: get_bounds(m) for m in members}
        self._enter(GestureState.RESIZING, start_world=world, shape_id=shape_id,
                    handle=handle, start_bounds=get_bounds(shape),
                    start_font_size=shape.font_size, group_start_bounds=group_start)

    def _resize_to(self, world: Point) -> None:
        g = self.gesture
        shape = self.diagram.get_shape(g.shape_id)
        if not shape:
            return
        dx = world.x - g.start_world.x
        dy = world.y - g.start_world.y
        min_size = self.settings.shapes.min_size

        if shape.shape_type == ShapeType.TEXT:
            self._resize_text(shape, dx, dy)
        elif g.group_start_bounds:
            resize_group(self.diagram, g.group_start_bounds, g.handle, dx, dy, min_size)
        else:
            apply_bounds(shape, resize_bounds(g.start_bounds, g.handle, dx, dy, min_size))

    def _resize_text(self, shape: ShapeModel, dx: float, dy: float) -> None:
        """Corner drag on a text label: vertical motion sets the font size."""
        g = self.gesture
        min_font = self.settings.shapes.min_font_size
        if "s" in g.handle:
            font_size = max(min_font, g.start_font_size + dy)
        else:
            font_size = max(min_font, g.start_font_size - dy)
        shape.font_size = font_size

        start = g.start_bounds
        shape.x = start.right - measure_text(shape.label, font_size) if "w" in g.handle else start.x
        shape.y = start.bottom - font_size if "n" in g.handle else start.y

    # =========================================================================
    # Lasso
    # =========================================================================

    def _lasso_down(self, world: Point, modifier: bool) -> None:
        if self.lasso_frame and self.selection.shape_ids and self.lasso_frame.contains(world):
            self._start_dragging(world, None)
            return
        self.lasso_frame = None
        if not modifier:
            self.selection.clear()
        self._enter(GestureState.LASSO_DRAWING, start_world=world, lasso_points=[world])

    def _finish_lasso(self, modifier: bool) -> None:
        points = self.gesture.lasso_points
        self._return_to_idle()
        if len(points) < 3:
            logger.debug(f"Lasso discarded with {len(points)} points")
            return

        for shape in self.diagram.shapes.values():
            if point_in_polygon(get_bounds(shape).center, points):
                self.selection.add_shape(shape.id, toggle=modifier)
        for conn in self.diagram.connections.values():
            midpoint = connection_midpoint(self.diagram, conn)
            if midpoint and point_in_polygon(midpoint, points):
                self.selection.add_connection(conn.id, toggle=modifier)

        self.lasso_frame = LassoFrame(points)
        logger.debug(
            f"Lasso selected {len(self.selection.shape_ids)} shapes, "
            f"{len(self.selection.connection_ids)} connections"
        )

    # =========================================================================
    # Placement
    # =========================================================================

    def set_tool(self, tool: Tool) -> None:
        """Switch tools. Drops the active gesture and any lasso frame."""
        self._return_to_idle()
        self.tool = tool
        self.armed_shape_type = None
        self.lasso_frame = None

    def arm_placement(self, shape_type: Optional[ShapeType]) -> None:
        """The next primary press places one shape of this type."""
        self.armed_shape_type = shape_type

    def place_shape(self, shape_type: ShapeType, x: float, y: float) -> Optional[ShapeModel]:
        """Place a shape at a screen point (drop from the toolbar)."""
        if self.state not in (GestureState.IDLE, GestureState.EDGE_SELECTING_FIRST,
                              GestureState.AWAITING_DIRECTION):
            return None
        self._return_to_idle()
        return self._place(shape_type, self.to_world(x, y))

    def _place(self, shape_type: ShapeType, world: Point) -> Optional[ShapeModel]:
        self._enter(GestureState.PLACING_SHAPE, start_world=world)
        self.armed_shape_type = None
        defaults = self.settings.shapes
        shape = None

        if shape_type == ShapeType.BOX:
            target = next((s for s in reversed(list(self.diagram.shapes.values()))
                           if s.is_box and contains(s, world)), None)
            if target:
                halves = split_box(self.diagram, target.id, world, self.current_color)
                if halves:
                    shape = halves[0] if halves[1].id == target.id else halves[1]
            else:
                half = defaults.box_size / 2
                shape = self.diagram.create_shape(
                    ShapeType.BOX, self._snap(world.x - half), self._snap(world.y - half),
                    width=defaults.box_size, height=defaults.box_size,
                    color=self.current_color, text_color=defaults.text_color)
        elif shape_type == ShapeType.ELLIPSE:
            r = defaults.ellipse_radius
            shape = self.diagram.create_shape(
                ShapeType.ELLIPSE, self._snap(world.x - r), self._snap(world.y - r),
                radius_x=r, radius_y=r,
                color=self.current_color, text_color=defaults.text_color)
        elif shape_type == ShapeType.TEXT:
            shape = self.diagram.create_shape(
                ShapeType.TEXT, world.x, world.y, font_size=defaults.font_size,
                color=self.current_color, text_color=defaults.text_color)

        self._return_to_idle()
        if shape:
            logger.info(f"Placed {shape.shape_type.value} {shape.id} at ({shape.x:.0f}, {shape.y:.0f})")
            if shape.shape_type == ShapeType.TEXT:
                self.selection.clear()
                self.selection.select_shape(shape.id)
                self.begin_edit(shape.id)
        return shape

    # =========================================================================
    # Connections
    # =========================================================================

    def choose_direction(self, direction: Direction) -> Optional[ConnectionModel]:
        """
        Apply a direction choice.

        Completes a pending connection, or re-targets the single
        selected connection when no connection is pending.
        """
        if self.state == GestureState.AWAITING_DIRECTION:
            g = self.gesture
            conn = self.diagram.add_connection(
                g.anchor.shape_id, g.anchor.edge, g.target.shape_id, g.target.edge,
                direction, self.current_color)
            self._return_to_idle()
            if conn:
                logger.info(f"Connected {conn.from_shape_id}.{conn.from_edge.value} -> "
                            f"{conn.to_shape_id}.{conn.to_edge.value} ({direction.value})")
            return conn

        conn = self.diagram.get_connection(self.selection.single_connection_id())
        if conn:
            self.diagram.set_direction(conn.id, direction)
        return conn

    # =========================================================================
    # Deletion and editing commands
    # =========================================================================

    def delete_at(self, x: float, y: float) -> bool:
        """Delete the connector or shape under the pointer."""
        world = self.to_world(x, y)
        conn = self.connection_at(world)
        if conn:
            self.delete_connection(conn.id)
            return True
        shape = self.shape_at(world)
        if shape:
            self.delete_shape(shape.id)
            return True
        return False

    def delete_connection(self, connection_id: str) -> bool:
        conn = self.diagram.remove_connection(connection_id)
        self.selection.discard_connection(connection_id)
        if conn:
            logger.info(f"Deleted connection {connection_id}")
        return conn is not None

    def delete_shape(self, shape_id: str) -> bool:
        """Delete a shape with its connections, selection entries and edit state."""
        removed_connections = [c.id for c in self.diagram.connections_for_shape(shape_id)]
        shape = self.diagram.remove_shape(shape_id)
        if not shape:
            return False
        self.selection.discard_shape(shape_id)
        for connection_id in removed_connections:
            self.selection.discard_connection(connection_id)
        if self.editing_shape_id == shape_id:
            self.editing_shape_id = None

        g = self.gesture
        anchors = [a for a in (g.anchor, g.target) if a]
        if any(a.shape_id == shape_id for a in anchors) or g.shape_id == shape_id:
            self._return_to_idle()
        logger.info(f"Deleted {shape.shape_type.value} {shape_id} "
                    f"and {len(removed_connections)} connections")
        return True

    def delete_selected(self) -> int:
        """Delete every selected shape and connection. Returns how many went."""
        if self.editing_shape_id is not None:
            return 0
        count = 0
        for connection_id in list(self.selection.connection_ids):
            if self.delete_connection(connection_id):
                count += 1
        for shape_id in list(self.selection.shape_ids):
            if self.delete_shape(shape_id):
                count += 1
        self.selection.clear()
        return count

    def select_all(self) -> None:
        self.selection.shape_ids = set(self.diagram.shapes)
        self.selection.connection_ids = set(self.diagram.connections)

    def apply_color(self, color: str) -> None:
        """Set the ambient color and recolor the selection."""
        self.current_color = color
        for shape_id in self.selection.shape_ids:
            shape = self.diagram.get_shape(shape_id)
            if not shape:
                continue
            if shape.shape_type == ShapeType.TEXT:
                shape.text_color = color
            else:
                shape.color = color
        for connection_id in self.selection.connection_ids:
            conn = self.diagram.get_connection(connection_id)
            if conn:
                conn.color = color

    def clear_diagram(self) -> None:
        """Remove everything and reset the session (view offset included)."""
        self.diagram.clear()
        self.reset()

    def reset(self) -> None:
        self.selection.clear()
        self._return_to_idle()
        self.view_offset = Point()
        self.lasso_frame = None
        self.editing_shape_id = None
        self.armed_shape_type = None
        self.hover_edge = None
        self.cursor = "default"

    # =========================================================================
    # Label editing
    # =========================================================================

    def begin_edit(self, shape_id: str) -> Optional[str]:
        """Start editing a shape's label. Returns the current text."""
        shape = self.diagram.get_shape(shape_id)
        if not shape:
            return None
        self.editing_shape_id = shape_id
        return shape.label

    def commit_edit(self, shape_id: str, text: str) -> bool:
        """Store edited text. An emptied text label falls back to the default text."""
        self.editing_shape_id = None
        shape = self.diagram.get_shape(shape_id)
        if not shape:
            return False
        text = (text or "").strip()
        if shape.shape_type == ShapeType.TEXT:
            shape.label = text or DEFAULT_TEXT
        else:
            shape.label = text
        return True

    def cancel_edit(self) -> None:
        self.editing_shape_id = None

    # =========================================================================
    # Rendering snapshot
    # =========================================================================

    def snapshot(self) -> EditorSnapshot:
        """Copy of everything a renderer needs to draw the current frame."""
        g = self.gesture
        preview_start = None
        if g.anchor:
            anchor_shape = self.diagram.get_shape(g.anchor.shape_id)
            if anchor_shape:
                preview_start = get_edge_point(anchor_shape, g.anchor.edge)

        handles = {}
        selected = self.diagram.get_shape(self.selection.single_shape_id())
        if selected:
            handles = get_resize_handles(selected, self.settings.hit_test.handle_padding)

        return EditorSnapshot(
            shapes=tuple(copy.deepcopy(list(self.diagram.shapes.values()))),
            connections=tuple(copy.deepcopy(list(self.diagram.connections.values()))),
            selected_shape_ids=frozenset(self.selection.shape_ids),
            selected_connection_ids=frozenset(self.selection.connection_ids),
            state=g.state,
            tool=self.tool,
            view_offset=Point(self.view_offset.x, self.view_offset.y),
            pending_anchor=g.anchor,
            target_anchor=g.target,
            preview_start=preview_start,
            preview_end=copy.copy(g.preview_end),
            lasso_points=tuple(copy.deepcopy(g.lasso_points)),
            lasso_frame=tuple(copy.deepcopy(self.lasso_frame.points)) if self.lasso_frame else (),
            resize_handles=handles,
            hover_edge=self.hover_edge,
            cursor=self.cursor,
            editing_shape_id=self.editing_shape_id,
        )
