"""Shared fixtures: an in-memory store and a manager with one furnished room."""

from __future__ import annotations

import pytest
import pytest_asyncio

from homestore import AppConfig, HierarchyManager, PersistentStore


ROOM = {"name": "Кухня", "x": 10.0, "y": 20.0, "width": 200.0, "height": 150.0, "color": "#10b981"}


@pytest.fixture
def store():
    s = PersistentStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(seed_demo_data=False)


@pytest.fixture
def manager(store: PersistentStore, config: AppConfig) -> HierarchyManager:
    return HierarchyManager(store, config)


@pytest_asyncio.fixture
async def furnished(manager: HierarchyManager) -> HierarchyManager:
    """House → floor → room → furniture → item, everything selected."""
    house_id = await manager.add_house("Дача")
    await manager.select_house(next(h for h in manager.houses if h.id == house_id))
    await manager.add_floor()
    await manager.select_floor(manager.floors[0])
    room_id = await manager.add_room(ROOM)
    await manager.select_room(next(r for r in manager.rooms if r.id == room_id))
    await manager.add_furniture({"name": "Шкаф"})
    await manager.select_furniture(manager.furniture[0])
    await manager.add_item({"name": "Кастрюля", "quantity": 2})
    return manager
