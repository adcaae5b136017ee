"""
Unit tests for the interaction state machine.

Tests:
- Panning and dragging (with and without grid snapping)
- Rigid group drags
- Resizing boxes, groups and text labels
- The two-click edge selection protocol
- Lasso selection and persisted lasso frames
- Deletion, placement and box splitting
- Label editing
"""

import pytest
from models.diagram import Direction, Edge, Point, ShapeType
from models.geometry import get_bounds
from services.interaction import (
    EdgeAnchor, GestureState, InteractionController, PointerButton, Tool,
)


def bounds_tuple(shape):
    b = get_bounds(shape)
    return (b.x, b.y, b.width, b.height)


def click(ctrl, x, y, **kwargs):
    ctrl.pointer_down(x, y, **kwargs)
    ctrl.pointer_up(x, y)


class TestPanning:
    """Tests for panning the view."""

    def test_pan_on_empty_canvas(self, controller):
        controller.pointer_down(500, 500)
        assert controller.state == GestureState.PANNING
        controller.pointer_move(520, 530)
        assert controller.view_offset == Point(20, 30)
        controller.pointer_up(520, 530)
        assert controller.state == GestureState.IDLE

    def test_world_coordinates_follow_offset(self, controller):
        controller.pointer_down(500, 500)
        controller.pointer_move(600, 500)
        controller.pointer_up(600, 500)
        assert controller.to_world(140, 40) == Point(40, 40)
        assert controller.shape_at(controller.to_world(140, 40)).id == "a"

    def test_empty_click_clears_selection(self, controller):
        click(controller, 40, 40)
        assert controller.selection.shape_ids == {"a"}
        click(controller, 500, 500)
        assert controller.selection.is_empty()

    def test_modifier_keeps_selection(self, controller):
        click(controller, 40, 40)
        click(controller, 500, 500, modifier=True)
        assert controller.selection.shape_ids == {"a"}

    def test_middle_button_pans_over_shape(self, controller):
        controller.pointer_down(40, 40, PointerButton.MIDDLE)
        assert controller.state == GestureState.PANNING

    def test_press_ignored_during_gesture(self, controller):
        controller.pointer_down(500, 500)
        controller.pointer_down(40, 40)
        assert controller.state == GestureState.PANNING
        assert controller.selection.is_empty()


class TestDragging:
    """Tests for dragging shapes."""

    def test_drag_shape(self, controller):
        controller.pointer_down(40, 40)
        assert controller.state == GestureState.DRAGGING_SELECTION
        assert controller.selection.shape_ids == {"a"}
        controller.pointer_move(70, 50)
        controller.pointer_up(70, 50)
        assert controller.diagram.shapes["a"].position == Point(30, 10)
        assert controller.state == GestureState.IDLE

    def test_drag_snaps_to_grid(self, snapping_controller):
        snapping_controller.pointer_down(40, 40)
        snapping_controller.pointer_move(100, 40)
        assert snapping_controller.diagram.shapes["a"].position == Point(96, 0)
        snapping_controller.pointer_move(60, 40)
        assert snapping_controller.diagram.shapes["a"].position == Point(0, 0)

    def test_group_moves_rigidly(self, snapping_controller):
        diagram = snapping_controller.diagram
        diagram.shapes["a"].group_id = "g1"
        diagram.shapes["b"].group_id = "g1"

        snapping_controller.pointer_down(40, 40)
        snapping_controller.pointer_move(100, 40)
        snapping_controller.pointer_up(100, 40)

        assert diagram.shapes["a"].position == Point(96, 0)
        assert diagram.shapes["b"].position == Point(296, 0)

    def test_drag_connected_shapes_keep_connection(self, controller, connect_edges):
        conn = connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        controller.pointer_down(240, 20)
        controller.pointer_move(240, 120)
        controller.pointer_up(240, 120)
        assert conn.id in controller.diagram.connections
        assert controller.diagram.shapes["b"].position == Point(200, 100)

    def test_leave_keeps_applied_motion(self, controller):
        controller.pointer_down(40, 40)
        controller.pointer_move(60, 40)
        controller.pointer_leave()
        assert controller.state == GestureState.IDLE
        assert controller.diagram.shapes["a"].position == Point(20, 0)


class TestResizing:
    """Tests for resize handles."""

    def test_resize_box(self, controller):
        click(controller, 40, 40)
        controller.pointer_down(92, 92)
        assert controller.state == GestureState.RESIZING
        controller.pointer_move(112, 102)
        controller.pointer_up(112, 102)
        assert bounds_tuple(controller.diagram.shapes["a"]) == (0, 0, 100, 90)

    def test_resize_floor(self, controller):
        click(controller, 40, 40)
        controller.pointer_down(92, 92)
        controller.pointer_move(-500, -500)
        assert bounds_tuple(controller.diagram.shapes["a"]) == (0, 0, 20, 20)

    def test_resize_west_keeps_right_side(self, controller):
        click(controller, 40, 40)
        controller.pointer_down(-12, 40)
        controller.pointer_move(500, 40)
        assert bounds_tuple(controller.diagram.shapes["a"]) == (60, 0, 20, 80)

    def test_resize_group_member(self, controller):
        """Dragging se of one half by (+40,+40) scales the whole group."""
        halves_before = len(controller.diagram.shapes)
        new_half = controller.place_shape(ShapeType.BOX, 70, 40)
        assert len(controller.diagram.shapes) == halves_before + 1

        click(controller, 20, 40)
        assert controller.selection.shape_ids == {"a"}
        controller.pointer_down(52, 92)
        controller.pointer_move(92, 132)
        controller.pointer_up(92, 132)

        assert bounds_tuple(controller.diagram.shapes["a"]) == (0, 0, 60, 120)
        assert bounds_tuple(new_half) == (60, 0, 60, 120)

    def test_resize_group_floor_applies_to_each_half(self, controller):
        new_half = controller.place_shape(ShapeType.BOX, 70, 40)
        click(controller, 20, 40)
        controller.pointer_down(52, 92)
        controller.pointer_move(-500, -500)
        controller.pointer_up(-500, -500)

        assert bounds_tuple(controller.diagram.shapes["a"]) == (0, 0, 20, 20)
        assert bounds_tuple(new_half) == (20, 0, 20, 20)

    def test_handles_need_single_selection(self, controller):
        controller.selection.shape_ids = {"a", "b"}
        controller.pointer_down(92, 92)
        assert controller.state != GestureState.RESIZING


class TestTextResizing:
    """Tests for resizing text labels through their font size."""

    @pytest.fixture
    def text_controller(self, mixed_diagram, free_settings):
        ctrl = InteractionController(mixed_diagram, free_settings)
        click(ctrl, 20, 210)
        assert ctrl.selection.shape_ids == {"txt"}
        return ctrl

    def test_south_corner_grows_font(self, text_controller):
        text_controller.pointer_down(67, 232)
        text_controller.pointer_move(67, 242)
        text = text_controller.diagram.shapes["txt"]
        assert text.font_size == 30
        assert text.position == Point(0, 200)

    def test_north_corner_anchors_bottom_right(self, text_controller):
        text_controller.pointer_down(-12, 188)
        text_controller.pointer_move(-12, 218)
        text = text_controller.diagram.shapes["txt"]
        assert text.font_size == 10
        assert text.y == 210
        assert text.x == pytest.approx(55 - 27.5)


class TestEdgeSelection:
    """Tests for the two-click connection protocol."""

    def test_first_click_sets_anchor(self, controller):
        click(controller, 78, 40)
        assert controller.state == GestureState.EDGE_SELECTING_FIRST
        assert controller.pending_anchor == EdgeAnchor("a", Edge.RIGHT)

    def test_connect_two_edges(self, controller, connect_edges):
        conn = connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        assert conn is not None
        assert (conn.from_shape_id, conn.from_edge) == ("a", Edge.RIGHT)
        assert (conn.to_shape_id, conn.to_edge) == ("b", Edge.LEFT)
        assert conn.direction == Direction.FORWARD
        assert controller.state == GestureState.IDLE
        assert controller.pending_anchor is None

    def test_second_click_awaits_direction(self, controller):
        click(controller, 78, 40)
        click(controller, 205, 45)
        assert controller.state == GestureState.AWAITING_DIRECTION
        assert controller.gesture.target == EdgeAnchor("b", Edge.LEFT)
        assert controller.diagram.connections == {}

    def test_same_edge_restarts(self, controller):
        click(controller, 78, 40)
        click(controller, 85, 30)
        assert controller.state == GestureState.EDGE_SELECTING_FIRST
        assert controller.pending_anchor == EdgeAnchor("a", Edge.RIGHT)

    def test_empty_click_cancels_anchor(self, controller):
        click(controller, 78, 40)
        click(controller, 500, 500)
        assert controller.state == GestureState.IDLE
        assert controller.pending_anchor is None

    def test_press_while_awaiting_abandons(self, controller):
        click(controller, 78, 40)
        click(controller, 205, 45)
        controller.pointer_down(500, 500)
        assert controller.state == GestureState.PANNING
        assert controller.diagram.connections == {}

    def test_occupied_edge_falls_through_to_drag(self, controller, connect_edges):
        connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        controller.pointer_down(78, 40)
        assert controller.state == GestureState.DRAGGING_SELECTION
        assert controller.pending_anchor is None

    def test_seam_quadrant_never_becomes_target(self, controller):
        """A click in a seam edge's zone does not offer a connection."""
        controller.diagram.shapes["a"].seam_edges.add(Edge.RIGHT)
        click(controller, 278, 40)
        assert controller.pending_anchor == EdgeAnchor("b", Edge.RIGHT)

        click(controller, 78, 10)

        assert controller.state != GestureState.AWAITING_DIRECTION
        assert controller.pending_anchor is None
        assert controller.diagram.connections == {}

    def test_seam_zone_falls_through_to_other_half(self, controller):
        """After a split the seam quadrant resolves to the neighbouring half."""
        new_half = controller.place_shape(ShapeType.BOX, 70, 40)
        click(controller, 278, 40)

        click(controller, 39, 10)

        assert controller.state == GestureState.AWAITING_DIRECTION
        target = controller.gesture.target
        assert target == EdgeAnchor(new_half.id, Edge.TOP)
        assert not controller.diagram.shapes[target.shape_id].is_seam_edge(target.edge)

    def test_leave_cancels_pending_anchor(self, controller):
        click(controller, 78, 40)
        controller.pointer_leave()
        assert controller.state == GestureState.IDLE
        assert controller.pending_anchor is None

    def test_deleting_anchor_shape_cancels(self, controller):
        click(controller, 78, 40)
        controller.delete_shape("a")
        assert controller.state == GestureState.IDLE

    def test_preview_follows_pointer(self, controller):
        click(controller, 78, 40)
        controller.pointer_move(150, 150)
        snap = controller.snapshot()
        assert snap.preview_start == Point(80, 40)
        assert snap.preview_end == Point(150, 150)


class TestConnectionSelection:
    """Tests for picking and re-targeting connections."""

    def test_click_line_selects_connection(self, controller, connect_edges):
        conn = connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        click(controller, 140, 42)
        assert controller.selection.connection_ids == {conn.id}
        assert controller.state == GestureState.IDLE

    def test_choose_direction_for_selected(self, controller, connect_edges):
        conn = connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        click(controller, 140, 42)
        assert controller.choose_direction(Direction.BACKWARD) is conn
        assert conn.direction == Direction.BACKWARD

    def test_choose_direction_without_target(self, controller):
        assert controller.choose_direction(Direction.BOTH) is None


class TestLasso:
    """Tests for lasso selection."""

    def draw(self, ctrl, points, modifier=False):
        ctrl.pointer_down(*points[0], modifier=modifier)
        for p in points[1:]:
            ctrl.pointer_move(*p)
        ctrl.pointer_up(*points[-1], modifier=modifier)

    def test_lasso_selects_enclosed_centers(self, controller):
        controller.set_tool(Tool.LASSO)
        self.draw(controller, [(-10, -10), (100, -10), (100, 100), (-10, 100)])
        assert controller.selection.shape_ids == {"a"}
        assert controller.lasso_frame is not None
        assert controller.state == GestureState.IDLE

    def test_lasso_selects_connections_by_midpoint(self, controller, connect_edges):
        conn = connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        controller.set_tool(Tool.LASSO)
        self.draw(controller, [(120, 0), (160, 0), (160, 80), (120, 80)])
        assert controller.selection.connection_ids == {conn.id}
        assert controller.selection.shape_ids == set()

    def test_short_lasso_discarded(self, controller):
        controller.set_tool(Tool.LASSO)
        self.draw(controller, [(0, 0), (50, 50)])
        assert controller.lasso_frame is None
        assert controller.selection.is_empty()

    def test_modifier_toggles(self, controller):
        controller.set_tool(Tool.LASSO)
        self.draw(controller, [(-10, -10), (100, -10), (100, 100), (-10, 100)])
        self.draw(controller, [(-20, -20), (300, -20), (300, 110), (-20, 110)], modifier=True)
        assert controller.selection.shape_ids == {"b"}

    def test_drag_inside_frame(self, controller):
        controller.set_tool(Tool.LASSO)
        self.draw(controller, [(-10, -10), (100, -10), (100, 100), (-10, 100)])
        controller.pointer_down(50, 50)
        assert controller.state == GestureState.DRAGGING_SELECTION
        controller.pointer_move(60, 70)
        controller.pointer_up(60, 70)
        assert controller.diagram.shapes["a"].position == Point(10, 20)
        assert controller.lasso_frame.points[0] == Point(0, 10)

    def test_tool_change_discards_frame(self, controller):
        controller.set_tool(Tool.LASSO)
        self.draw(controller, [(-10, -10), (100, -10), (100, 100), (-10, 100)])
        controller.set_tool(Tool.SELECT)
        assert controller.lasso_frame is None


class TestDeletion:
    """Tests for deleting shapes and connections."""

    def test_right_click_deletes_connection_first(self, controller, connect_edges):
        connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        controller.pointer_down(140, 40, PointerButton.SECONDARY)
        assert controller.diagram.connections == {}
        assert len(controller.diagram.shapes) == 2

    def test_right_click_deletes_shape(self, controller, connect_edges):
        connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        controller.pointer_down(240, 20, PointerButton.SECONDARY)
        assert "b" not in controller.diagram.shapes
        assert controller.diagram.connections == {}

    def test_delete_selected(self, controller, connect_edges):
        connect_edges(controller, (78, 40), (205, 45), Direction.FORWARD)
        click(controller, 40, 40)
        assert controller.delete_selected() == 1
        assert list(controller.diagram.shapes) == ["b"]
        assert controller.diagram.connections == {}
        assert controller.selection.is_empty()

    def test_delete_ignored_while_editing(self, controller):
        click(controller, 40, 40)
        controller.begin_edit("a")
        assert controller.delete_selected() == 0
        assert "a" in controller.diagram.shapes

    def test_delete_missing_shape(self, controller):
        assert not controller.delete_shape("missing")


class TestPlacement:
    """Tests for placing new shapes."""

    def test_armed_box_placed_centered(self, controller):
        controller.arm_placement(ShapeType.BOX)
        controller.pointer_down(500, 500)
        placed = list(controller.diagram.shapes.values())[-1]
        assert placed.is_box
        assert placed.position == Point(460, 460)
        assert controller.armed_shape_type is None
        assert controller.state == GestureState.IDLE

    def test_ellipse_snaps(self, snapping_controller):
        shape = snapping_controller.place_shape(ShapeType.ELLIPSE, 500, 500)
        assert shape.position == Point(480, 480)
        assert shape.radius_x == 40

    def test_text_does_not_snap(self, snapping_controller):
        shape = snapping_controller.place_shape(ShapeType.TEXT, 130, 130)
        assert shape.position == Point(130, 130)

    def test_box_on_box_splits(self, controller):
        shape = controller.place_shape(ShapeType.BOX, 70, 40)
        assert bounds_tuple(shape) == (40, 0, 40, 80)
        assert bounds_tuple(controller.diagram.shapes["a"]) == (0, 0, 40, 80)
        assert len(controller.diagram.connections) == 1

    def test_text_tool_places_and_edits(self, controller):
        controller.set_tool(Tool.TEXT)
        controller.pointer_down(300, 300)
        text = list(controller.diagram.shapes.values())[-1]
        assert text.shape_type == ShapeType.TEXT
        assert text.label == "Text"
        assert controller.selection.shape_ids == {text.id}
        assert controller.editing_shape_id == text.id

    def test_placement_uses_current_color(self, controller):
        controller.apply_color("#ff0000")
        shape = controller.place_shape(ShapeType.BOX, 500, 500)
        assert shape.color == "#ff0000"


class TestEditing:
    """Tests for label editing and other commands."""

    def test_double_click_begins_edit(self, controller):
        assert controller.double_click(40, 40) == ""
        assert controller.editing_shape_id == "a"
        assert controller.commit_edit("a", "  Server ")
        assert controller.diagram.shapes["a"].label == "Server"
        assert controller.editing_shape_id is None

    def test_empty_text_label_falls_back(self, controller):
        text = controller.place_shape(ShapeType.TEXT, 300, 300)
        controller.commit_edit(text.id, "   ")
        assert text.label == "Text"

    def test_cancel_edit(self, controller):
        controller.begin_edit("a")
        controller.cancel_edit()
        assert controller.editing_shape_id is None
        assert controller.diagram.shapes["a"].label == ""

    def test_apply_color_to_selection(self, mixed_diagram, free_settings):
        ctrl = InteractionController(mixed_diagram, free_settings)
        ctrl.select_all()
        ctrl.apply_color("#00ff00")
        assert mixed_diagram.shapes["box"].color == "#00ff00"
        assert mixed_diagram.shapes["ell"].color == "#00ff00"
        assert mixed_diagram.shapes["txt"].text_color == "#00ff00"

    def test_clear_diagram(self, controller):
        controller.pointer_down(500, 500)
        controller.pointer_move(550, 500)
        controller.pointer_up(550, 500)
        controller.clear_diagram()
        assert controller.diagram.shapes == {}
        assert controller.view_offset == Point(0, 0)


class TestHoverAndSnapshot:
    """Tests for hover feedback and the rendering snapshot."""

    def test_hover_cursor(self, controller):
        controller.pointer_move(78, 40)
        assert controller.hover_edge == EdgeAnchor("a", Edge.RIGHT)
        assert controller.cursor == "crosshair"
        controller.pointer_move(40, 40)
        assert controller.cursor == "grab"
        controller.pointer_move(500, 500)
        assert controller.cursor == "default"

    def test_snapshot_is_a_copy(self, controller):
        click(controller, 40, 40)
        snap = controller.snapshot()
        assert len(snap.resize_handles) == 8
        assert snap.selected_shape_ids == frozenset({"a"})
        snap.shapes[0].x = 999
        assert controller.diagram.shapes["a"].x == 0
