"""
Box splitting and rigid group transforms.

Dropping a box onto an existing box splits it into two halves that
share a group id and are joined on their seam. Groups move and resize
as one unit: a group resize scales every member relative to the
group's bounding box.
"""

import logging
import uuid
from typing import Optional

from models.diagram import Bounds, DiagramModel, Edge, Point, ShapeModel, ShapeType
from models.geometry import get_bounds

logger = logging.getLogger(__name__)

MIN_SHAPE_SIZE = 20.0


def group_bounds(diagram: DiagramModel, group_id: Optional[str]) -> Optional[Bounds]:
    """Union of the bounds of every member of a group."""
    members = diagram.group_members(group_id)
    if not members:
        return None
    bounds = get_bounds(members[0])
    for member in members[1:]:
        bounds = bounds.union(get_bounds(member))
    return bounds


def resize_bounds(start: Bounds, handle: str, dx: float, dy: float,
                  min_size: float = MIN_SHAPE_SIZE,
                  min_height: Optional[float] = None) -> Bounds:
    """
    Apply a handle drag to a rectangle.

    Handles containing "w"/"n" move the left/top side and inversely
    adjust the size; "e"/"s" grow the right/bottom side. Sizes never go
    below `min_size` (or `min_height` vertically, when given); when
    clamped the opposite side stays put.
    """
    x, y, width, height = start.x, start.y, start.width, start.height
    min_width = min_size
    if min_height is None:
        min_height = min_size

    if "e" in handle:
        width = max(min_width, start.width + dx)
    if "w" in handle:
        width = max(min_width, start.width - dx)
        x = start.right - width
    if "s" in handle:
        height = max(min_height, start.height + dy)
    if "n" in handle:
        height = max(min_height, start.height - dy)
        y = start.bottom - height

    return Bounds(x, y, width, height)


def apply_bounds(shape: ShapeModel, bounds: Bounds) -> None:
    """Set a box or ellipse's position and extent from a rectangle."""
    shape.x = bounds.x
    shape.y = bounds.y
    if shape.shape_type == ShapeType.ELLIPSE:
        shape.radius_x = bounds.width / 2
        shape.radius_y = bounds.height / 2
    elif shape.shape_type == ShapeType.BOX:
        shape.width = bounds.width
        shape.height = bounds.height


def _scale_axis(value: float, old_origin: float, new_origin: float, scale: float) -> float:
    if scale == 1.0 and old_origin == new_origin:
        return value
    return new_origin + (value - old_origin) * scale


def scale_group_members(diagram: DiagramModel, member_bounds: dict[str, Bounds],
                        old_box: Bounds, new_box: Bounds) -> None:
    """
    Re-lay out group members after their bounding box changed.

    Each member's offset from the old origin and its extent are scaled
    per axis by new/old size, so relative layout is preserved.
    """
    scale_x = new_box.width / old_box.width if old_box.width > 0 else 1.0
    scale_y = new_box.height / old_box.height if old_box.height > 0 else 1.0

    for shape_id, start in member_bounds.items():
        shape = diagram.get_shape(shape_id)
        if not shape:
            continue
        apply_bounds(shape, Bounds(
            _scale_axis(start.x, old_box.x, new_box.x, scale_x),
            _scale_axis(start.y, old_box.y, new_box.y, scale_y),
            start.width * scale_x,
            start.height * scale_y,
        ))


def resize_group(diagram: DiagramModel, member_bounds: dict[str, Bounds], handle: str,
                 dx: float, dy: float, min_size: float = MIN_SHAPE_SIZE) -> Optional[Bounds]:
    """
    Resize a whole group by dragging one of its members' handles.

    The group box stops shrinking once its smallest member reaches
    `min_size` on either axis.
    """
    if not member_bounds:
        return None
    starts = list(member_bounds.values())
    old_box = starts[0]
    for bounds in starts[1:]:
        old_box = old_box.union(bounds)
    smallest_w = min(b.width for b in starts)
    smallest_h = min(b.height for b in starts)
    min_w = old_box.width
    if smallest_w > 0:
        min_w = min(old_box.width, old_box.width * min_size / smallest_w)
    min_h = old_box.height
    if smallest_h > 0:
        min_h = min(old_box.height, old_box.height * min_size / smallest_h)

    new_box = resize_bounds(old_box, handle, dx, dy, min_w, min_h)
    scale_group_members(diagram, member_bounds, old_box, new_box)
    return new_box


def split_box(diagram: DiagramModel, box_id: str, drop_point: Point,
              color: str) -> Optional[tuple[ShapeModel, ShapeModel]]:
    """
    Split a box in two at a drop point.

    If the drop point is further from the center vertically than
    horizontally the box is cut into top and bottom halves, otherwise
    into left and right halves.

    Returns:
        (first, second) halves ordered top/left first, or None if the
        target is not a box.
    """
    target = diagram.get_shape(box_id)
    if not target or not target.is_box:
        return None

    start = get_bounds(target)
    center = start.center
    dx = drop_point.x - center.x
    dy = drop_point.y - center.y

    if abs(dy) > abs(dx):
        half = start.height / 2
        first = Bounds(start.x, start.y, start.width, half)
        second = Bounds(start.x, start.y + half, start.width, start.height - half)
        near_side = Edge.BOTTOM if dy > 0 else Edge.TOP
    else:
        half = start.width / 2
        first = Bounds(start.x, start.y, half, start.height)
        second = Bounds(start.x + half, start.y, start.width - half, start.height)
        near_side = Edge.RIGHT if dx > 0 else Edge.LEFT

    near_is_second = near_side in (Edge.BOTTOM, Edge.RIGHT)
    near_bounds, far_bounds = (second, first) if near_is_second else (first, second)

    group_id = target.group_id or str(uuid.uuid4())[:8]
    seam_edges = set(target.seam_edges)

    # The original box keeps its id, color and label as the far half
    near = ShapeModel(
        shape_type=ShapeType.BOX,
        color=color,
        text_color=target.text_color,
        label="",
        group_id=group_id,
        seam_edges=seam_edges | {near_side.opposite},
    )
    apply_bounds(near, near_bounds)
    apply_bounds(target, far_bounds)
    target.group_id = group_id
    target.seam_edges = seam_edges | {near_side}

    diagram.add_shape(near)

    # The original's side facing the drop now belongs to the new half
    for conn in diagram.connections_for_shape(target.id):
        if conn.from_shape_id == target.id and conn.from_edge == near_side:
            conn.from_shape_id = near.id
        if conn.to_shape_id == target.id and conn.to_edge == near_side:
            conn.to_shape_id = near.id

    first_shape, second_shape = (target, near) if near_is_second else (near, target)
    seam_from = Edge.RIGHT if near_side in (Edge.LEFT, Edge.RIGHT) else Edge.BOTTOM
    diagram.link_seam(first_shape.id, seam_from, second_shape.id, seam_from.opposite, color)

    logger.info(
        f"Split box {target.id} {'horizontally' if seam_from == Edge.BOTTOM else 'vertically'} "
        f"into {first_shape.id} and {second_shape.id} (group {group_id})"
    )
    return first_shape, second_shape
