"""
Main application window.

Assembles the toolbar, the diagram canvas and the status bar.
"""

from PyQt6.QtGui import QAction, QActionGroup, QKeySequence, QColor
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QToolBar, QLabel, QStatusBar, QColorDialog,
)

from models import DiagramModel, Direction, ShapeType
from views.diagram_canvas import DiagramCanvas, DIRECTION_LABELS
from services import InteractionController, Tool, get_settings


class MainWindow(QMainWindow):
    """
    Main application window.

    Layout:
    ┌─────────────────────────────────────────────────────┐
    │  Menu Bar                                           │
    ├─────────────────────────────────────────────────────┤
    │  Toolbar (tools, shapes, color, arrow direction)    │
    ├─────────────────────────────────────────────────────┤
    │  Diagram Canvas                                     │
    ├─────────────────────────────────────────────────────┤
    │  Status Bar                                         │
    └─────────────────────────────────────────────────────┘
    """

    def __init__(self):
        super().__init__()

        # Settings manager (JSON file based)
        self.settings_manager = get_settings()

        # Models
        self.diagram = DiagramModel()
        self.controller = InteractionController(self.diagram, self.settings_manager.settings)

        # Setup
        self._setup_window()
        self._setup_central_widget()
        self._setup_menu()
        self._setup_toolbar()
        self._setup_status_bar()
        self._connect_signals()

        # Restore window geometry
        self._load_window_settings()

    def _load_window_settings(self):
        """Restore window geometry and state."""
        geometry, state = self.settings_manager.get_window_geometry()
        if geometry:
            self.restoreGeometry(geometry)
        if state:
            self.restoreState(state)

    def _save_window_settings(self):
        """Save window geometry and state."""
        self.settings_manager.save_window_geometry(
            self.saveGeometry(),
            self.saveState()
        )

    def closeEvent(self, event):
        """Handle window close - save settings."""
        self._save_window_settings()
        super().closeEvent(event)

    def _setup_window(self):
        """Configure window properties."""
        self.setWindowTitle("Diagram Editor")
        self.setMinimumSize(900, 700)
        self.resize(1200, 800)

        self.setStyleSheet("""
            QMainWindow {
                background: #F3F4F6;
            }
            QToolBar {
                background: #F9FAFB;
                border-bottom: 1px solid #E5E7EB;
                padding: 6px 12px;
                spacing: 6px;
            }
        """)

    def _setup_central_widget(self):
        self.canvas = DiagramCanvas(self.controller)
        self.setCentralWidget(self.canvas)

    def _setup_menu(self):
        """Create menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("&File")

        new_action = QAction("&New Diagram", self)
        new_action.setShortcut(QKeySequence.StandardKey.New)
        new_action.triggered.connect(self._on_new_diagram)
        file_menu.addAction(new_action)

        file_menu.addSeparator()

        exit_action = QAction("E&xit", self)
        exit_action.setShortcut(QKeySequence.StandardKey.Quit)
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # Edit menu
        edit_menu = menubar.addMenu("&Edit")

        delete_action = QAction("&Delete Selected", self)
        delete_action.triggered.connect(self._on_delete_selected)
        edit_menu.addAction(delete_action)

        select_all_action = QAction("Select &All", self)
        select_all_action.triggered.connect(self._on_select_all)
        edit_menu.addAction(select_all_action)

        # View menu
        view_menu = menubar.addMenu("&View")

        self._snap_action = QAction("&Snap to Grid", self)
        self._snap_action.setCheckable(True)
        self._snap_action.setChecked(self.settings_manager.snap_to_grid)
        self._snap_action.toggled.connect(self._on_snap_toggled)
        view_menu.addAction(self._snap_action)

        reset_view_action = QAction("&Reset View", self)
        reset_view_action.triggered.connect(self._on_reset_view)
        view_menu.addAction(reset_view_action)

    def _setup_toolbar(self):
        """Create toolbar with tools, shapes, color and direction controls."""
        toolbar = QToolBar("Tools", self)
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        tool_group = QActionGroup(self)
        tool_group.setExclusive(True)
        for label, tool in (("Select", Tool.SELECT), ("Lasso", Tool.LASSO), ("Text", Tool.TEXT)):
            action = QAction(label, self)
            action.setCheckable(True)
            action.setChecked(tool == Tool.SELECT)
            action.triggered.connect(lambda checked, t=tool: self._on_tool_selected(t))
            tool_group.addAction(action)
            toolbar.addAction(action)

        toolbar.addSeparator()

        for label, shape_type in (("Box", ShapeType.BOX), ("Ellipse", ShapeType.ELLIPSE)):
            action = QAction(label, self)
            action.setToolTip(f"Click the canvas to place a {label.lower()}")
            action.triggered.connect(lambda checked, s=shape_type: self._on_shape_armed(s))
            toolbar.addAction(action)

        toolbar.addSeparator()

        color_action = QAction("Color…", self)
        color_action.triggered.connect(self._on_pick_color)
        toolbar.addAction(color_action)

        toolbar.addSeparator()

        for direction, label in DIRECTION_LABELS.items():
            action = QAction(label, self)
            action.setToolTip("Set the direction of the selected connection")
            action.triggered.connect(lambda checked, d=direction: self._on_direction(d))
            toolbar.addAction(action)

    def _setup_status_bar(self):
        """Create status bar."""
        status = QStatusBar()
        status.setStyleSheet("""
            QStatusBar {
                background: #F9FAFB;
                border-top: 1px solid #E5E7EB;
                padding: 4px 8px;
                color: #6B7280;
                font-size: 12px;
            }
        """)
        self.setStatusBar(status)

        self._count_label = QLabel("Shapes: 0  Connections: 0")
        status.addWidget(self._count_label)

        status.addWidget(QWidget(), 1)

        self._instruction_label = QLabel(
            "Click an edge twice to connect • Drag empty space to pan • Right-click to delete"
        )
        status.addWidget(self._instruction_label)

    def _connect_signals(self):
        """Connect all signals."""
        self.canvas.diagramChanged.connect(self._update_counts)
        self.canvas.statusMessage.connect(lambda msg: self.statusBar().showMessage(msg, 3000))

    def _update_counts(self):
        self._count_label.setText(
            f"Shapes: {len(self.diagram.shapes)}  Connections: {len(self.diagram.connections)}"
        )

    def _on_tool_selected(self, tool: Tool):
        self.controller.set_tool(tool)
        self.canvas.redraw()

    def _on_shape_armed(self, shape_type: ShapeType):
        self.controller.set_tool(Tool.SELECT)
        self.controller.arm_placement(shape_type)
        self.statusBar().showMessage(f"Click to place a {shape_type.value} (drop on a box to split it)", 3000)

    def _on_pick_color(self):
        color = QColorDialog.getColor(QColor(self.controller.current_color), self, "Choose Color")
        if color.isValid():
            self.controller.apply_color(color.name())
            self.canvas.redraw()

    def _on_direction(self, direction: Direction):
        self.canvas.choose_direction_for_selection(direction)

    def _on_new_diagram(self):
        self.controller.clear_diagram()
        self.canvas.redraw()
        self._update_counts()

    def _on_delete_selected(self):
        count = self.controller.delete_selected()
        self.statusBar().showMessage(f"Deleted {count} item(s)", 2000)
        self.canvas.redraw()
        self._update_counts()

    def _on_select_all(self):
        self.controller.select_all()
        self.canvas.redraw()

    def _on_snap_toggled(self, checked: bool):
        self.settings_manager.snap_to_grid = checked

    def _on_reset_view(self):
        self.controller.view_offset.x = 0
        self.controller.view_offset.y = 0
        self.canvas.redraw()
