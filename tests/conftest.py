"""
Pytest configuration and shared fixtures for diagram editor tests.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Generator

# Add parent directory to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.diagram import DiagramModel, ShapeModel, ShapeType
from models.geometry import set_text_measurer
from services.settings_manager import AppSettings, reset_settings_manager
from services.interaction import InteractionController


# ============== Temporary Directory Fixtures ==============

@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    tmp = tempfile.mkdtemp(prefix="diagram_editor_test_")
    yield Path(tmp)
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_globals():
    """Reset module-level state shared between tests."""
    set_text_measurer(None)
    reset_settings_manager()
    yield
    set_text_measurer(None)
    reset_settings_manager()


# ============== Model Fixtures ==============

@pytest.fixture
def empty_diagram() -> DiagramModel:
    """Create an empty diagram."""
    return DiagramModel()


@pytest.fixture
def two_boxes() -> DiagramModel:
    """Two 80x80 boxes side by side: 'a' at (0,0) and 'b' at (200,0)."""
    diagram = DiagramModel()
    diagram.add_shape(ShapeModel(id="a", shape_type=ShapeType.BOX, x=0, y=0, width=80, height=80))
    diagram.add_shape(ShapeModel(id="b", shape_type=ShapeType.BOX, x=200, y=0, width=80, height=80))
    return diagram


@pytest.fixture
def mixed_diagram() -> DiagramModel:
    """A box, an ellipse and a text label."""
    diagram = DiagramModel()
    diagram.add_shape(ShapeModel(id="box", shape_type=ShapeType.BOX, x=0, y=0, width=80, height=80))
    diagram.add_shape(ShapeModel(id="ell", shape_type=ShapeType.ELLIPSE, x=200, y=0,
                                 radius_x=40, radius_y=40))
    diagram.add_shape(ShapeModel(id="txt", shape_type=ShapeType.TEXT, x=0, y=200,
                                 label="Hello", font_size=20))
    return diagram


# ============== Settings Fixtures ==============

@pytest.fixture
def free_settings() -> AppSettings:
    """Settings with grid snapping turned off."""
    settings = AppSettings()
    settings.grid.snap_to_grid = False
    return settings


@pytest.fixture
def settings_file(temp_dir: Path) -> Path:
    """Path for an isolated settings file."""
    return temp_dir / "config" / "settings.json"


# ============== Controller Fixtures ==============

@pytest.fixture
def controller(two_boxes: DiagramModel, free_settings: AppSettings) -> InteractionController:
    """Controller over two boxes, no snapping, zero view offset."""
    return InteractionController(two_boxes, free_settings)


@pytest.fixture
def snapping_controller(two_boxes: DiagramModel) -> InteractionController:
    """Controller over two boxes with default (snapping) settings."""
    return InteractionController(two_boxes, AppSettings())


# ============== Helper Functions ==============

def connect(ctrl: InteractionController, first: tuple, second: tuple, direction):
    """Run the click-click-choose protocol between two screen points."""
    ctrl.pointer_down(*first)
    ctrl.pointer_up(*first)
    ctrl.pointer_down(*second)
    ctrl.pointer_up(*second)
    return ctrl.choose_direction(direction)


@pytest.fixture
def connect_edges():
    """The `connect` helper as a fixture."""
    return connect
