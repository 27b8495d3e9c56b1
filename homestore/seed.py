"""First-run demo content: one house with a furnished first floor."""

from __future__ import annotations

import logging
from datetime import datetime

from .models import Table
from .store import PersistentStore
from .utils import FLOOR_NAME_TEMPLATE

logger = logging.getLogger(__name__)

DEMO_ROOMS = [
    {"name": "Гостиная", "x": 50, "y": 50, "width": 200, "height": 150, "color": "#3b82f6"},
    {"name": "Кухня", "x": 280, "y": 50, "width": 150, "height": 120, "color": "#10b981"},
    {"name": "Спальня", "x": 50, "y": 230, "width": 180, "height": 120, "color": "#8b5cf6"},
    {"name": "Детская", "x": 260, "y": 230, "width": 150, "height": 100, "color": "#ec4899"},
    {"name": "Кабинет", "x": 440, "y": 50, "width": 120, "height": 120, "color": "#14b8a6"},
    {"name": "Санузел", "x": 440, "y": 230, "width": 80, "height": 100, "color": "#06b6d4"},
]

# индекс комнаты -> мебель; у мебели список (название, количество)
DEMO_FURNITURE = [
    (0, {"name": "Книжный шкаф", "x": 100, "y": 70, "width": 80, "height": 40, "color": "#d97706"},
     [("Справочник по Python", 1), ("Блокнот", 5)]),
    (0, {"name": "Диван", "x": 150, "y": 120, "width": 100, "height": 60, "color": "#94a3b8"},
     [("Подушка", 3)]),
    (1, {"name": "Кухонный шкаф", "x": 300, "y": 70, "width": 100, "height": 30, "color": "#f59e0b"},
     [("Набор кастрюль", 1), ("Набор посуды", 1)]),
    (2, {"name": "Кровать", "x": 80, "y": 90, "width": 120, "height": 80, "color": "#f472b6"}, []),
    (3, {"name": "Односпальная кровать", "x": 90, "y": 70, "width": 80, "height": 60, "color": "#fb923c"}, []),
    (4, {"name": "Письменный стол", "x": 10, "y": 30, "width": 90, "height": 60, "color": "#a16207"}, []),
    (5, {"name": "Унитаз", "x": 20, "y": 30, "width": 40, "height": 40, "color": "#64748b"}, []),
]


async def seed_demo_data(store: PersistentStore, house_name: str = "Мой дом") -> bool:
    """Fill an empty database with demo content. Returns False if houses already exist."""
    if await store.count(Table.HOUSES) > 0:
        return False

    now = datetime.now()
    house_id = await store.add(Table.HOUSES, {"name": house_name, "created_at": now})
    floor_id = await store.add(Table.FLOORS, {"house_id": house_id, "level": 1,
                                              "name": FLOOR_NAME_TEMPLATE.format(level=1)})
    room_ids = [await store.add(Table.ROOMS, {"floor_id": floor_id, **room}) for room in DEMO_ROOMS]

    items = 0
    for room_idx, furniture, contents in DEMO_FURNITURE:
        furniture_id = await store.add(Table.FURNITURE, {"room_id": room_ids[room_idx], **furniture})
        for name, quantity in contents:
            await store.add(Table.ITEMS, {"furniture_id": furniture_id, "name": name,
                                          "quantity": quantity, "photo_ref": None, "added_at": now})
            items += 1

    logger.info("Seeded demo house #%s: %d rooms, %d furniture, %d items",
                house_id, len(room_ids), len(DEMO_FURNITURE), items)
    return True
