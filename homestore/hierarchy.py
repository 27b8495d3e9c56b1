"""View state and cascade-aware mutations over the inventory hierarchy.

HierarchyManager owns the current selections (house, floor, room, furniture)
and the child collections loaded for them. Collections are never patched in
place: after every mutation the affected collection is re-read from the store
and replaced wholesale, and selection pointers are re-pointed at the fresh
rows. New state is assigned only after all store calls of an operation
succeeded, so a StorageError leaves the in-memory view as it was.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Dict, List, Mapping, Optional

from .config import AppConfig
from .errors import PreconditionError, ValidationError
from .models import (CHILD_TABLE, ENTITY_TYPES, PARENT_FIELD, Floor, FloorId, Furniture,
                     FurnitureId, House, HouseId, Item, ItemId, Room, RoomId, Subtree, Table)
from .store import PersistentStore
from .utils import FLOOR_NAME_TEMPLATE, FURNITURE_DEFAULT_GEOMETRY, ColorPolicy, is_blank, is_hex_color

logger = logging.getLogger(__name__)

# (таблица, атрибут коллекции, атрибут указателя выбора), сверху вниз
LEVELS = [
    (Table.HOUSES, "houses", "current_house"),
    (Table.FLOORS, "floors", "current_floor"),
    (Table.ROOMS, "rooms", "selected_room"),
    (Table.FURNITURE, "furniture", "selected_furniture"),
    (Table.ITEMS, "items", None),
]
_LEVEL_INDEX = {t: i for i, (t, _, _) in enumerate(LEVELS)}

GEOMETRY_FIELDS = ("x", "y", "width", "height")
_TIMESTAMP_FIELDS = {Table.HOUSES: "created_at", Table.ITEMS: "added_at"}


class HierarchyManager:
    """Explicit state-owning service for the House → Floor → Room → Furniture → Item chain.

    Mutations are serialized by one asyncio.Lock (single writer). Subscribers
    are called synchronously after every state change.
    """

    def __init__(self, store: PersistentStore, config: Optional[AppConfig] = None):
        self.store = store
        self.config = config or AppConfig()

        self.houses: List[House] = []
        self.floors: List[Floor] = []
        self.rooms: List[Room] = []
        self.furniture: List[Furniture] = []
        self.items: List[Item] = []

        self.current_house: Optional[House] = None
        self.current_floor: Optional[Floor] = None
        self.selected_room: Optional[Room] = None
        self.selected_furniture: Optional[Furniture] = None

        self._listeners: List[Callable[[], None]] = []
        self._lock = asyncio.Lock()

    # ---------- subscriptions ----------
    def subscribe(self, callback: Callable[[], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self) -> None:
        for cb in list(self._listeners):
            cb()

    # ---------- loading / selection ----------
    async def initialize(self) -> None:
        """Load houses and open the first one (with its first floor)."""
        async with self._lock:
            houses = await self.store.list_all(Table.HOUSES)
            if houses:
                await self._select_house(houses[0])
            self.houses = houses
        logger.info("Loaded %d house(s)", len(self.houses))
        self._notify()

    async def load_houses(self) -> List[House]:
        async with self._lock:
            rows = await self._load_collection(Table.HOUSES)
            self._assign(Table.HOUSES, rows)
        self._notify()
        return self.houses

    async def select_house(self, house: House) -> None:
        async with self._lock:
            await self._select_house(house)
        self._notify()

    async def select_floor(self, floor: Floor) -> None:
        async with self._lock:
            if self.current_house is None or floor.house_id != self.current_house.id:
                raise PreconditionError("Этаж не принадлежит открытому дому")
            fresh = await self._require_existing(Table.FLOORS, floor.id)
            rooms = await self._fetch(Table.ROOMS, fresh.id)
            self.current_floor = fresh
            self._reset_below(Table.FLOORS)
            self.rooms = rooms
        logger.debug("Selected floor #%s (%d rooms)", floor.id, len(self.rooms))
        self._notify()

    async def select_room(self, room: Optional[Room]) -> None:
        async with self._lock:
            if room is None:
                self.selected_room = None
                self._reset_below(Table.ROOMS)
            else:
                if self.current_floor is None or room.floor_id != self.current_floor.id:
                    raise PreconditionError("Комната не принадлежит открытому этажу")
                fresh = await self._require_existing(Table.ROOMS, room.id)
                furniture = await self._fetch(Table.FURNITURE, fresh.id)
                self.selected_room = fresh
                self._reset_below(Table.ROOMS)
                self.furniture = furniture
        self._notify()

    async def select_furniture(self, furniture: Optional[Furniture]) -> None:
        async with self._lock:
            if furniture is None:
                self.selected_furniture = None
                self._reset_below(Table.FURNITURE)
            else:
                if self.selected_room is None or furniture.room_id != self.selected_room.id:
                    raise PreconditionError("Мебель не принадлежит выбранной комнате")
                fresh = await self._require_existing(Table.FURNITURE, furniture.id)
                items = await self._fetch(Table.ITEMS, fresh.id)
                self.selected_furniture = fresh
                self._reset_below(Table.FURNITURE)
                self.items = items
        self._notify()

    async def _select_house(self, house: House) -> None:
        fresh = await self._require_existing(Table.HOUSES, house.id)
        floors = await self._fetch(Table.FLOORS, fresh.id)
        rooms = await self._fetch(Table.ROOMS, floors[0].id) if floors else []
        self.current_house = fresh
        self._reset_below(Table.HOUSES)
        self.floors = floors
        if floors:
            self.current_floor = floors[0]
            self.rooms = rooms
        logger.debug("Selected house #%s (%d floors)", fresh.id, len(floors))

    # ---------- add ----------
    async def add_house(self, name: str) -> HouseId:
        name = self._clean_name(name)
        async with self._lock:
            new_id = await self.store.add(Table.HOUSES, {"name": name, "created_at": datetime.now()})
            rows = await self._load_collection(Table.HOUSES)
            self._assign(Table.HOUSES, rows)
        logger.info("Added house #%s %r", new_id, name)
        self._notify()
        return new_id

    async def add_floor(self, name: Optional[str] = None, level: Optional[int] = None) -> FloorId:
        house = self._require_parent(self.current_house, "Сначала выберите дом")
        if level is not None:
            level = self._positive_int(level, "level")
        async with self._lock:
            if level is None:
                level = await self.store.count(Table.FLOORS, "house_id", house.id) + 1
            if is_blank(name):
                name = FLOOR_NAME_TEMPLATE.format(level=level)
            record = {"house_id": house.id, "level": level, "name": name.strip()}
            new_id = await self.store.add(Table.FLOORS, record)
            rows = await self._load_collection(Table.FLOORS)
            self._assign(Table.FLOORS, rows)
        logger.info("Added floor #%s (level %d) to house #%s", new_id, level, house.id)
        self._notify()
        return new_id

    async def add_room(self, data: Mapping) -> RoomId:
        floor = self._require_parent(self.current_floor, "Сначала выберите этаж")
        record = self._new_record(Table.ROOMS, data)
        record.update(self._geometry(data, min_size=self.config.editor.min_room_size))
        record["color"] = self._color(data.get("color"), self.config.editor.default_room_color)
        record["floor_id"] = floor.id
        return await self._add_child(Table.ROOMS, record)

    async def add_furniture(self, data: Mapping) -> FurnitureId:
        room = self._require_parent(self.selected_room, "Сначала выберите комнату")
        record = self._new_record(Table.FURNITURE, data)
        record.update(self._geometry({**FURNITURE_DEFAULT_GEOMETRY, **data}))
        record["color"] = self._color(data.get("color"), self.config.editor.default_furniture_color)
        record["room_id"] = room.id
        return await self._add_child(Table.FURNITURE, record)

    async def add_item(self, data: Mapping) -> ItemId:
        furniture = self._require_parent(self.selected_furniture, "Сначала выберите мебель")
        record = self._new_record(Table.ITEMS, data)
        record["quantity"] = self._positive_int(data.get("quantity", 1), "quantity")
        record["photo_ref"] = self._photo_ref(data.get("photo_ref"))
        record["added_at"] = datetime.now()
        record["furniture_id"] = furniture.id
        return await self._add_child(Table.ITEMS, record)

    async def _add_child(self, table: Table, record: Dict) -> int:
        async with self._lock:
            new_id = await self.store.add(table, record)
            rows = await self._load_collection(table)
            self._assign(table, rows)
        logger.info("Added %s #%s %r", table.value, new_id, record["name"])
        self._notify()
        return new_id

    # ---------- update ----------
    async def update_house(self, house_id: HouseId, patch: Mapping) -> bool:
        return await self._update(Table.HOUSES, house_id, patch)

    async def update_floor(self, floor_id: FloorId, patch: Mapping) -> bool:
        return await self._update(Table.FLOORS, floor_id, patch)

    async def update_room(self, room_id: RoomId, patch: Mapping) -> bool:
        return await self._update(Table.ROOMS, room_id, patch)

    async def update_furniture(self, furniture_id: FurnitureId, patch: Mapping) -> bool:
        return await self._update(Table.FURNITURE, furniture_id, patch)

    async def update_item(self, item_id: ItemId, patch: Mapping) -> bool:
        return await self._update(Table.ITEMS, item_id, patch)

    async def _update(self, table: Table, entity_id, patch: Mapping) -> bool:
        clean = self._validate_patch(table, patch)
        if not clean:
            return False
        async with self._lock:
            changed = await self.store.update(table, entity_id, clean)
            if changed:
                rows = await self._load_collection(table)
                self._assign(table, rows)
        if not changed:
            logger.debug("Update of missing %s #%s ignored", table.value, entity_id)
            return False
        logger.info("Updated %s #%s: %s", table.value, entity_id, ", ".join(sorted(clean)))
        self._notify()
        return True

    # ---------- delete (cascade) ----------
    async def delete_house(self, house_id: HouseId) -> bool:
        """Delete the house with all floors, rooms, furniture and items in it.

        Every delete_* returns True when rows were removed and False when the
        id no longer exists. A missing id is not an error: nothing changes and
        subscribers are not notified.
        """
        return await self._delete(Table.HOUSES, house_id)

    async def delete_floor(self, floor_id: FloorId) -> bool:
        return await self._delete(Table.FLOORS, floor_id)

    async def delete_room(self, room_id: RoomId) -> bool:
        return await self._delete(Table.ROOMS, room_id)

    async def delete_furniture(self, furniture_id: FurnitureId) -> bool:
        return await self._delete(Table.FURNITURE, furniture_id)

    async def delete_item(self, item_id: ItemId) -> bool:
        return await self._delete(Table.ITEMS, item_id)

    async def _delete(self, table: Table, entity_id) -> bool:
        async with self._lock:
            if await self.store.get(table, entity_id) is None:
                logger.debug("Delete of missing %s #%s ignored", table.value, entity_id)
                return False
            subtree = await self.collect_subtree(table, entity_id)
            removed = await self.store.delete_batch(subtree.delete_steps())
            rows = await self._load_collection(table)
            self._prune_selection(subtree)
            self._assign(table, rows)
        logger.info("Deleted %s #%s (%d rows)", table.value, entity_id, removed)
        self._notify()
        return True

    async def collect_subtree(self, table: Table, entity_id) -> Subtree:
        """Ids of the entity and all of its descendants, level by level."""
        subtree = Subtree(root_table=table, ids={table: [entity_id]})
        level, parent_ids = table, [entity_id]
        while level in CHILD_TABLE and parent_ids:
            child = CHILD_TABLE[level]
            child_ids = []
            for pid in parent_ids:
                child_ids.extend(row.id for row in await self._fetch(child, pid))
            subtree.ids[child] = child_ids
            level, parent_ids = child, child_ids
        return subtree

    def _prune_selection(self, subtree: Subtree) -> None:
        for table, _, pointer in LEVELS:
            if pointer is None:
                continue
            current = getattr(self, pointer)
            if current is not None and subtree.contains(table, current.id):
                setattr(self, pointer, None)
                self._reset_below(table)

    # ---------- collection plumbing ----------
    async def _fetch(self, table: Table, parent_id) -> list:
        return await self.store.list_by_parent(table, PARENT_FIELD[table], parent_id)

    async def _require_existing(self, table: Table, entity_id):
        fresh = await self.store.get(table, entity_id)
        if fresh is None:
            raise PreconditionError(f"{table.value} #{entity_id} больше не существует")
        return fresh

    def _parent_pointer(self, table: Table):
        idx = _LEVEL_INDEX[table]
        if idx == 0:
            return None
        return getattr(self, LEVELS[idx - 1][2])

    async def _load_collection(self, table: Table) -> list:
        """Authoritative rows for the collection the view currently shows."""
        if table is Table.HOUSES:
            return await self.store.list_all(Table.HOUSES)
        parent = self._parent_pointer(table)
        if parent is None:
            return []
        return await self._fetch(table, parent.id)

    def _assign(self, table: Table, rows: list) -> None:
        _, collection, pointer = LEVELS[_LEVEL_INDEX[table]]
        setattr(self, collection, rows)
        if pointer is None:
            return
        current = getattr(self, pointer)
        if current is None:
            return
        fresh = next((r for r in rows if r.id == current.id), None)
        setattr(self, pointer, fresh)
        if fresh is None:
            self._reset_below(table)

    def _reset_below(self, table: Table) -> None:
        for _, collection, pointer in LEVELS[_LEVEL_INDEX[table] + 1:]:
            setattr(self, collection, [])
            if pointer is not None:
                setattr(self, pointer, None)

    # ---------- validation ----------
    @staticmethod
    def _require_parent(parent, message: str):
        if parent is None:
            raise PreconditionError(message)
        return parent

    @staticmethod
    def _clean_name(name) -> str:
        if is_blank(name):
            raise ValidationError("Название не может быть пустым")
        return name.strip()

    @staticmethod
    def _positive_int(value, field_name: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationError(f"{field_name} должно быть целым числом ≥ 1")
        return value

    @staticmethod
    def _photo_ref(value) -> Optional[str]:
        if value is not None and not isinstance(value, str):
            raise ValidationError("photo_ref должен быть строкой")
        return value or None

    def _new_record(self, table: Table, data: Mapping) -> Dict:
        self._check_keys(table, data)
        return {"name": self._clean_name(data.get("name"))}

    @staticmethod
    def _check_keys(table: Table, data: Mapping) -> None:
        # id, ключ родителя и отметка времени задаются только менеджером
        fixed = {"id", PARENT_FIELD.get(table), _TIMESTAMP_FIELDS.get(table)} - {None}
        allowed = set(ENTITY_TYPES[table].__dataclass_fields__) - fixed
        locked = set(data) & fixed
        if locked:
            raise ValidationError(f"Поля {sorted(locked)} нельзя изменить")
        unknown = set(data) - allowed
        if unknown:
            raise ValidationError(f"Неизвестные поля для {table.value}: {sorted(unknown)}")

    @staticmethod
    def _number(value, field_name: str) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError(f"{field_name} должно быть числом")
        return value

    def _geometry(self, data: Mapping, min_size: Optional[float] = None) -> Dict:
        missing = [k for k in GEOMETRY_FIELDS if k not in data]
        if missing:
            raise ValidationError(f"Не заданы поля геометрии: {missing}")
        out = {k: self._checked_geometry_value(k, data[k]) for k in GEOMETRY_FIELDS}
        if min_size is not None and not (out["width"] > min_size and out["height"] > min_size):
            raise ValidationError(f"Комната должна быть больше {min_size:g}×{min_size:g}")
        return out

    def _checked_geometry_value(self, key: str, value) -> float:
        value = self._number(value, key)
        if key in ("x", "y") and value < 0:
            raise ValidationError(f"{key} не может быть отрицательным")
        if key in ("width", "height") and value <= 0:
            raise ValidationError(f"{key} должно быть больше нуля")
        return value

    def _color(self, value, default: str) -> str:
        if value is None or value == "":
            return default
        policy = self.config.color_policy
        if not isinstance(value, str):
            raise ValidationError("Цвет должен быть строкой")
        if policy is ColorPolicy.ACCEPT:
            return value
        if is_hex_color(value):
            return value.lower()
        if policy is ColorPolicy.REJECT:
            raise ValidationError(f"Некорректный цвет: {value!r}")
        logger.warning("Color %r replaced with default %s", value, default)
        return default

    def _validate_patch(self, table: Table, patch: Mapping) -> Dict:
        self._check_keys(table, patch)
        clean: Dict = {}
        for key, value in patch.items():
            if key == "name":
                clean[key] = self._clean_name(value)
            elif key in GEOMETRY_FIELDS:
                clean[key] = self._checked_geometry_value(key, value)
            elif key == "color":
                default = (self.config.editor.default_room_color if table is Table.ROOMS
                           else self.config.editor.default_furniture_color)
                clean[key] = self._color(value, default)
            elif key in ("level", "quantity"):
                clean[key] = self._positive_int(value, key)
            elif key == "photo_ref":
                clean[key] = self._photo_ref(value)
            else:
                clean[key] = value
        return clean
