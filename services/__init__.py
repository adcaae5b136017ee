"""Services package."""

from .grid_snap import snap, snap_point, DEFAULT_GRID_PITCH
from .box_split import (
    split_box,
    group_bounds,
    resize_bounds,
    resize_group,
    scale_group_members,
    apply_bounds,
    MIN_SHAPE_SIZE,
)
from .settings_manager import (
    SettingsManager,
    AppSettings,
    GridSettings,
    HitTestSettings,
    ShapeDefaults,
    UISettings,
    get_settings,
    reset_settings_manager,
)
from .interaction import (
    InteractionController,
    GestureState,
    Gesture,
    Tool,
    PointerButton,
    EdgeAnchor,
    EditorSnapshot,
)

__all__ = [
    "snap",
    "snap_point",
    "DEFAULT_GRID_PITCH",
    "split_box",
    "group_bounds",
    "resize_bounds",
    "resize_group",
    "scale_group_members",
    "apply_bounds",
    "MIN_SHAPE_SIZE",
    "SettingsManager",
    "AppSettings",
    "GridSettings",
    "HitTestSettings",
    "ShapeDefaults",
    "UISettings",
    "get_settings",
    "reset_settings_manager",
    "InteractionController",
    "GestureState",
    "Gesture",
    "Tool",
    "PointerButton",
    "EdgeAnchor",
    "EditorSnapshot",
]
