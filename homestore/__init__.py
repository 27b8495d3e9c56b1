from .errors import HomeStoreError, ValidationError, PreconditionError, StorageError
from .utils import ColorPolicy, MIN_ROOM_SIZE, GRID_STEP, ROOM_PRESET_COLORS
from .models import (House, Floor, Room, Furniture, Item, Table, EditorState, RoomDraft, Subtree,
                     HouseId, FloorId, RoomId, FurnitureId, ItemId)
from .config import AppConfig, EditorConfig, load_config
from .store import PersistentStore
from .hierarchy import HierarchyManager
from .seed import seed_demo_data
from .editor import SpatialEditor
from .render import DrawOp, Op, build_display_list

__all__ = [
    "HomeStoreError", "ValidationError", "PreconditionError", "StorageError",
    "ColorPolicy", "MIN_ROOM_SIZE", "GRID_STEP", "ROOM_PRESET_COLORS",
    "House", "Floor", "Room", "Furniture", "Item", "Table", "EditorState", "RoomDraft", "Subtree",
    "HouseId", "FloorId", "RoomId", "FurnitureId", "ItemId",
    "AppConfig", "EditorConfig", "load_config",
    "PersistentStore", "HierarchyManager", "seed_demo_data",
    "SpatialEditor", "DrawOp", "Op", "build_display_list",
]
