from __future__ import annotations
import re
from enum import Enum

# ===== Canvas / grid =====
GRID_STEP = 50.0
CANVAS_W = 1200.0
CANVAS_H = 700.0

# ===== Geometry rules =====
MIN_ROOM_SIZE = 50.0

# ===== Defaults =====
DEFAULT_ROOM_COLOR = "#93c5fd"
DEFAULT_FURNITURE_COLOR = "#f59e0b"
FURNITURE_DEFAULT_GEOMETRY = {"x": 100.0, "y": 100.0, "width": 80.0, "height": 40.0}
FLOOR_NAME_TEMPLATE = "Этаж {level}"

ROOM_PRESET_COLORS = [
    ("Небесный", "#93c5fd"), ("Мятный", "#86efac"), ("Персиковый", "#fdba74"),
    ("Лавандовый", "#c4b5fd"), ("Коралловый", "#fda4af"), ("Лимонный", "#fde047"),
    ("Нефритовый", "#6ee7b7"), ("Сакура", "#f9a8d4"), ("Янтарный", "#fbbf24"),
    ("Морской", "#60a5fa"), ("Фиалковый", "#a78bfa"), ("Клубничный", "#fb7185"),
]

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class ColorPolicy(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    COERCE = "coerce"


def is_hex_color(value) -> bool:
    return isinstance(value, str) and bool(_HEX_COLOR.match(value))


def is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()
