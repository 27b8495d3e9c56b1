from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, NewType, Optional

HouseId = NewType("HouseId", int)
FloorId = NewType("FloorId", int)
RoomId = NewType("RoomId", int)
FurnitureId = NewType("FurnitureId", int)
ItemId = NewType("ItemId", int)


class Table(str, Enum):
    HOUSES = "houses"
    FLOORS = "floors"
    ROOMS = "rooms"
    FURNITURE = "furniture"
    ITEMS = "items"


@dataclass(frozen=True)
class House:
    id: HouseId
    name: str
    created_at: datetime


@dataclass(frozen=True)
class Floor:
    id: FloorId
    house_id: HouseId
    level: int
    name: str


@dataclass(frozen=True)
class Room:
    id: RoomId
    floor_id: FloorId
    name: str
    x: float
    y: float
    width: float
    height: float
    color: str


@dataclass(frozen=True)
class Furniture:
    id: FurnitureId
    room_id: RoomId
    name: str
    x: float
    y: float
    width: float
    height: float
    color: str


@dataclass(frozen=True)
class Item:
    id: ItemId
    furniture_id: FurnitureId
    name: str
    quantity: int
    added_at: datetime
    photo_ref: Optional[str] = None


# связи уровней иерархии: house -> floor -> room -> furniture -> item
PARENT_FIELD: Dict[Table, str] = {
    Table.FLOORS: "house_id",
    Table.ROOMS: "floor_id",
    Table.FURNITURE: "room_id",
    Table.ITEMS: "furniture_id",
}

CHILD_TABLE: Dict[Table, Table] = {
    Table.HOUSES: Table.FLOORS,
    Table.FLOORS: Table.ROOMS,
    Table.ROOMS: Table.FURNITURE,
    Table.FURNITURE: Table.ITEMS,
}

ENTITY_TYPES = {
    Table.HOUSES: House,
    Table.FLOORS: Floor,
    Table.ROOMS: Room,
    Table.FURNITURE: Furniture,
    Table.ITEMS: Item,
}


class EditorState:
    IDLE = "idle"
    DRAWING = "drawing"
    PENDING_COMMIT = "pending_commit"


@dataclass
class RoomDraft:
    """Прямоугольник комнаты, ещё не сохранённый в базе."""
    x: float
    y: float
    width: float
    height: float
    name: str = ""
    color: str = ""

    def as_record(self) -> Dict:
        return {"name": self.name, "x": self.x, "y": self.y,
                "width": self.width, "height": self.height, "color": self.color}


@dataclass
class Subtree:
    """Id всех строк поддерева, сгруппированные по таблицам (от корня вниз)."""
    root_table: Table
    ids: Dict[Table, list] = field(default_factory=dict)

    def contains(self, table: Table, entity_id) -> bool:
        return entity_id in self.ids.get(table, ())

    def delete_steps(self):
        # потомки раньше предков
        return [(t, ids) for t, ids in reversed(list(self.ids.items())) if ids]

    def total(self) -> int:
        return sum(len(v) for v in self.ids.values())
