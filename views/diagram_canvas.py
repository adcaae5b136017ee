"""
Diagram canvas view.

Paints EditorSnapshots produced by the InteractionController and
forwards Qt mouse/keyboard events to it. All editing decisions are
made by the controller; this widget only draws and asks the user
for discrete choices (arrow direction, label text).
"""

import math
import logging
from typing import Optional
from PyQt6.QtCore import Qt, QEvent, QPointF, QRectF, pyqtSignal
from PyQt6.QtGui import (
    QPainter, QPen, QBrush, QColor, QFont, QFontMetricsF,
    QPolygonF, QMouseEvent, QKeyEvent
)
from PyQt6.QtWidgets import (
    QGraphicsView, QGraphicsScene, QFrame, QMenu, QInputDialog
)

from models import (
    Direction, Edge, Point, ShapeModel, ShapeType,
    get_bounds, get_edge_point, set_text_measurer,
)
from services import (
    InteractionController, GestureState, PointerButton,
)

# Setup logger for this module
logger = logging.getLogger(__name__)


# Color scheme
COLORS = {
    "outline": QColor("#333333"),
    "selection": QColor("#48bb78"),       # Green
    "edge_highlight": QColor("#48bb78"),
    "preview": QColor("#667eea"),
    "connection_highlight": QColor("#667eea"),
    "handle": QColor("#FFFFFF"),
    "handle_border": QColor("#3B82F6"),
    "grid": QColor("#E5E7EB"),
    "background": QColor("#FAFAFA"),
}

CURSORS = {
    "default": Qt.CursorShape.ArrowCursor,
    "crosshair": Qt.CursorShape.CrossCursor,
    "pointer": Qt.CursorShape.PointingHandCursor,
    "grab": Qt.CursorShape.OpenHandCursor,
    "text": Qt.CursorShape.IBeamCursor,
}

DIRECTION_LABELS = {
    Direction.FORWARD: "Forward  →",
    Direction.BACKWARD: "Backward  ←",
    Direction.BOTH: "Both  ↔",
    Direction.NONE: "None  —",
}

ARROW_LENGTH = 10
ARROW_WIDTH = 6
EDGE_DOT_RADIUS = 6


def _font(size: float) -> QFont:
    font = QFont("sans-serif")
    font.setPixelSize(max(1, int(round(size))))
    return font


def _qt_text_width(text: str, font_size: float) -> float:
    return QFontMetricsF(_font(font_size)).horizontalAdvance(text)


class DiagramCanvas(QGraphicsView):
    """
    Main canvas widget for viewing and editing the diagram.

    The scene rectangle tracks the viewport, so scene and screen
    coordinates coincide; the view offset is applied when drawing.
    """

    # Signals
    diagramChanged = pyqtSignal()   # Any model or selection change
    statusMessage = pyqtSignal(str)

    def __init__(self, controller: InteractionController, parent=None):
        super().__init__(parent)
        self.controller = controller
        self._choosing_direction = False

        # Text labels are measured with real font metrics
        set_text_measurer(_qt_text_width)

        # Scene kept in viewport coordinates
        self.diagram_scene = QGraphicsScene(self)
        self.setScene(self.diagram_scene)

        # View settings
        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setViewportUpdateMode(QGraphicsView.ViewportUpdateMode.FullViewportUpdate)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.setFrameShape(QFrame.Shape.NoFrame)

        self.viewport().setMouseTracking(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumHeight(controller.settings.ui.canvas_height)
        self.setAcceptDrops(False)

    # =========================================================================
    # Event forwarding
    # =========================================================================

    @staticmethod
    def _button(event: QMouseEvent) -> Optional[PointerButton]:
        if event.button() == Qt.MouseButton.LeftButton:
            return PointerButton.PRIMARY
        if event.button() == Qt.MouseButton.RightButton:
            return PointerButton.SECONDARY
        if event.button() == Qt.MouseButton.MiddleButton:
            return PointerButton.MIDDLE
        return None

    @staticmethod
    def _modifier(event) -> bool:
        mods = event.modifiers()
        return bool(mods & (Qt.KeyboardModifier.ShiftModifier
                            | Qt.KeyboardModifier.ControlModifier
                            | Qt.KeyboardModifier.MetaModifier))

    def mousePressEvent(self, event: QMouseEvent):
        """Handle mouse press."""
        button = self._button(event)
        if button is None:
            super().mousePressEvent(event)
            return
        pos = event.position()
        was_editing = self.controller.editing_shape_id
        self.controller.pointer_down(pos.x(), pos.y(), button, self._modifier(event))
        event.accept()

        if self.controller.state == GestureState.AWAITING_DIRECTION:
            self._ask_direction(event.globalPosition().toPoint())
        elif self.controller.editing_shape_id and self.controller.editing_shape_id != was_editing:
            self._edit_label(self.controller.editing_shape_id)
        self._refresh()

    def mouseMoveEvent(self, event: QMouseEvent):
        """Handle mouse move."""
        pos = event.position()
        self.controller.pointer_move(pos.x(), pos.y())
        self._refresh()

    def mouseReleaseEvent(self, event: QMouseEvent):
        """Handle mouse release."""
        pos = event.position()
        self.controller.pointer_up(pos.x(), pos.y(), self._modifier(event))
        self._refresh()

    def mouseDoubleClickEvent(self, event: QMouseEvent):
        if event.button() != Qt.MouseButton.LeftButton:
            return
        pos = event.position()
        shape_id = None
        if self.controller.double_click(pos.x(), pos.y()) is not None:
            shape_id = self.controller.editing_shape_id
        if shape_id:
            self._edit_label(shape_id)
        self._refresh()

    def viewportEvent(self, event) -> bool:
        if event.type() == QEvent.Type.Leave:
            # The direction menu takes the pointer while a connection is pending
            if not self._choosing_direction:
                self.controller.pointer_leave()
            self._refresh()
        return super().viewportEvent(event)

    def resizeEvent(self, event):
        """Keep the scene rectangle matched to the viewport."""
        super().resizeEvent(event)
        size = self.viewport().size()
        self.diagram_scene.setSceneRect(0, 0, size.width(), size.height())

    def keyPressEvent(self, event: QKeyEvent):
        """Handle keyboard shortcuts."""
        if event.key() in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            count = self.controller.delete_selected()
            if count:
                self.statusMessage.emit(f"Deleted {count} item(s)")
            event.accept()
        elif event.key() == Qt.Key.Key_Escape:
            self.controller.cancel()
            self.controller.selection.clear()
            event.accept()
        elif event.key() == Qt.Key.Key_A and event.modifiers() == Qt.KeyboardModifier.ControlModifier:
            self.controller.select_all()
            event.accept()
        else:
            super().keyPressEvent(event)
            return
        self._refresh()

    def _refresh(self):
        self.viewport().setCursor(CURSORS.get(self.controller.cursor, Qt.CursorShape.ArrowCursor))
        self.redraw()
        self.diagramChanged.emit()

    def redraw(self):
        self.viewport().update()

    # =========================================================================
    # Discrete choices
    # =========================================================================

    def _ask_direction(self, global_pos):
        """Offer the four arrow directions for a pending connection."""
        menu = QMenu(self)
        actions = {}
        for direction, label in DIRECTION_LABELS.items():
            actions[menu.addAction(label)] = direction
        self._choosing_direction = True
        try:
            chosen = menu.exec(global_pos)
        finally:
            self._choosing_direction = False
        if chosen in actions:
            conn = self.controller.choose_direction(actions[chosen])
            if conn is None:
                self.statusMessage.emit("Connection rejected: edge already in use")
        else:
            self.controller.cancel()

    def choose_direction_for_selection(self, direction: Direction):
        if self.controller.choose_direction(direction):
            self._refresh()

    def _edit_label(self, shape_id: str):
        current = self.controller.begin_edit(shape_id)
        if current is None:
            return
        text, ok = QInputDialog.getText(self, "Edit Label", "Text:", text=current)
        if ok:
            self.controller.commit_edit(shape_id, text)
        else:
            self.controller.cancel_edit()

    # =========================================================================
    # Painting
    # =========================================================================

    def drawBackground(self, painter: QPainter, rect: QRectF):
        """Draw grid background."""
        painter.fillRect(rect, COLORS["background"])
        if self.controller.settings.grid.show_grid:
            self._draw_grid(painter, rect)

    def drawForeground(self, painter: QPainter, rect: QRectF):
        """Draw the diagram, shifted by the view offset."""
        snap = self.controller.snapshot()
        painter.save()
        painter.translate(snap.view_offset.x, snap.view_offset.y)
        shapes = {s.id: s for s in snap.shapes}

        for conn in snap.connections:
            self._draw_connection(painter, shapes, conn, conn.id in snap.selected_connection_ids)

        for shape in snap.shapes:
            self._draw_shape(painter, shape, shape.id in snap.selected_shape_ids)

        for anchor in (snap.hover_edge, snap.pending_anchor, snap.target_anchor):
            if anchor and anchor.shape_id in shapes:
                self._draw_edge_dot(painter, shapes[anchor.shape_id], anchor.edge)

        if snap.preview_start and snap.preview_end:
            pen = QPen(COLORS["preview"], 2, Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.drawLine(QPointF(snap.preview_start.x, snap.preview_start.y),
                             QPointF(snap.preview_end.x, snap.preview_end.y))

        for points in (snap.lasso_points, snap.lasso_frame):
            if len(points) > 1:
                painter.setPen(QPen(COLORS["preview"], 2, Qt.PenStyle.DashLine))
                painter.setBrush(Qt.BrushStyle.NoBrush)
                painter.drawPolygon(QPolygonF([QPointF(p.x, p.y) for p in points]))

        r = self.controller.settings.hit_test.handle_radius
        painter.setPen(QPen(COLORS["handle_border"], 1))
        painter.setBrush(QBrush(COLORS["handle"]))
        for pos in snap.resize_handles.values():
            painter.drawRect(QRectF(pos.x - r / 2, pos.y - r / 2, r, r))

        painter.restore()

    def _draw_grid(self, painter: QPainter, rect: QRectF):
        pitch = self.controller.settings.grid.pitch
        if pitch <= 0:
            return
        offset = self.controller.view_offset
        painter.setPen(QPen(COLORS["grid"], 1))

        left = rect.left() - (rect.left() - offset.x) % pitch
        top = rect.top() - (rect.top() - offset.y) % pitch

        x = left
        while x < rect.right():
            painter.drawLine(QPointF(x, rect.top()), QPointF(x, rect.bottom()))
            x += pitch
        y = top
        while y < rect.bottom():
            painter.drawLine(QPointF(rect.left(), y), QPointF(rect.right(), y))
            y += pitch

    def _draw_shape(self, painter: QPainter, shape: ShapeModel, selected: bool):
        bounds = get_bounds(shape)
        rect = QRectF(bounds.x, bounds.y, bounds.width, bounds.height)
        outline = QPen(COLORS["selection"] if selected else COLORS["outline"], 3 if selected else 2)

        if shape.shape_type == ShapeType.TEXT:
            painter.setFont(_font(shape.font_size))
            painter.setPen(QColor(shape.text_color))
            painter.drawText(rect, Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop, shape.label)
            if selected:
                painter.setPen(QPen(COLORS["selection"], 2, Qt.PenStyle.DashLine))
                painter.setBrush(Qt.BrushStyle.NoBrush)
                painter.drawRect(rect.adjusted(-2, -2, 2, 2))
            return

        painter.setPen(outline)
        painter.setBrush(QBrush(QColor(shape.color)))
        if shape.shape_type == ShapeType.ELLIPSE:
            painter.drawEllipse(rect)
        else:
            painter.drawRect(rect)

        if shape.label:
            painter.setFont(_font(14))
            painter.setPen(QColor(shape.text_color))
            painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, shape.label)

    def _draw_edge_dot(self, painter: QPainter, shape: ShapeModel, edge: Edge):
        point = get_edge_point(shape, edge)
        if point is None:
            return
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(COLORS["edge_highlight"]))
        painter.drawEllipse(QPointF(point.x, point.y), EDGE_DOT_RADIUS, EDGE_DOT_RADIUS)

    def _draw_connection(self, painter: QPainter, shapes: dict, conn, selected: bool):
        source = shapes.get(conn.from_shape_id)
        target = shapes.get(conn.to_shape_id)
        if not source or not target:
            return
        start = get_edge_point(source, conn.from_edge)
        end = get_edge_point(target, conn.to_edge)
        if start is None or end is None:
            return

        if selected:
            painter.setPen(QPen(COLORS["connection_highlight"], 4))
            painter.drawLine(QPointF(start.x, start.y), QPointF(end.x, end.y))

        color = QColor(conn.color)
        painter.setPen(QPen(color, 2))
        painter.drawLine(QPointF(start.x, start.y), QPointF(end.x, end.y))

        if conn.direction in (Direction.FORWARD, Direction.BOTH):
            self._draw_arrow(painter, color, end, start)
        if conn.direction in (Direction.BACKWARD, Direction.BOTH):
            self._draw_arrow(painter, color, start, end)

    def _draw_arrow(self, painter: QPainter, color: QColor, tip: Point, tail: Point):
        angle = math.atan2(tip.y - tail.y, tip.x - tail.x)
        cos_a, sin_a = math.cos(angle), math.sin(angle)

        def rotate(px, py):
            return QPointF(tip.x + px * cos_a - py * sin_a, tip.y + px * sin_a + py * cos_a)

        head = QPolygonF([
            QPointF(tip.x, tip.y),
            rotate(-ARROW_LENGTH, -ARROW_WIDTH),
            rotate(-ARROW_LENGTH, ARROW_WIDTH),
        ])
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(color))
        painter.drawPolygon(head)
