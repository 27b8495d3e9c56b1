"""Tests for first-run demo content."""

from __future__ import annotations

import pytest

from homestore import HierarchyManager, PersistentStore, Table, seed_demo_data


class TestSeed:
    @pytest.mark.asyncio
    async def test_counts(self, store: PersistentStore):
        assert await seed_demo_data(store) is True
        assert await store.count(Table.HOUSES) == 1
        assert await store.count(Table.FLOORS) == 1
        assert await store.count(Table.ROOMS) == 6
        assert await store.count(Table.FURNITURE) == 7
        assert await store.count(Table.ITEMS) == 5

    @pytest.mark.asyncio
    async def test_second_run_does_nothing(self, store: PersistentStore):
        await seed_demo_data(store)
        assert await seed_demo_data(store) is False
        assert await store.count(Table.ROOMS) == 6

    @pytest.mark.asyncio
    async def test_manager_opens_seeded_house(self, store: PersistentStore, config):
        await seed_demo_data(store, house_name="Демо")
        manager = HierarchyManager(store, config)
        await manager.initialize()
        assert manager.current_house.name == "Демо"
        assert manager.current_floor.name == "Этаж 1"
        assert [r.name for r in manager.rooms][:2] == ["Гостиная", "Кухня"]

    @pytest.mark.asyncio
    async def test_deleting_seeded_house_clears_everything(self, store: PersistentStore, config):
        await seed_demo_data(store)
        manager = HierarchyManager(store, config)
        await manager.initialize()
        await manager.delete_house(manager.current_house.id)
        for table in Table:
            assert await store.count(table) == 0
