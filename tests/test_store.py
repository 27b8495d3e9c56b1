"""Tests for the SQLite-backed PersistentStore."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from homestore import House, PersistentStore, Room, StorageError, Table, ValidationError


async def _house(store: PersistentStore, name: str = "Дом") -> int:
    return await store.add(Table.HOUSES, {"name": name, "created_at": datetime(2024, 1, 1)})


async def _floor(store: PersistentStore, house_id: int, level: int = 1) -> int:
    return await store.add(Table.FLOORS, {"house_id": house_id, "level": level, "name": f"Этаж {level}"})


async def _room(store: PersistentStore, floor_id: int, name: str = "Кухня") -> int:
    return await store.add(Table.ROOMS, {"floor_id": floor_id, "name": name, "x": 0, "y": 0,
                                         "width": 100, "height": 100, "color": "#93c5fd"})


class TestCrud:
    @pytest.mark.asyncio
    async def test_add_assigns_distinct_ids(self, store: PersistentStore):
        a = await _house(store, "A")
        b = await _house(store, "B")
        assert a != b

    @pytest.mark.asyncio
    async def test_get_returns_dataclass(self, store: PersistentStore):
        hid = await _house(store)
        house = await store.get(Table.HOUSES, hid)
        assert house == House(id=hid, name="Дом", created_at=datetime(2024, 1, 1))

    @pytest.mark.asyncio
    async def test_get_missing_is_none(self, store: PersistentStore):
        assert await store.get(Table.ROOMS, 999) is None

    @pytest.mark.asyncio
    async def test_list_by_parent_filters(self, store: PersistentStore):
        hid = await _house(store)
        f1 = await _floor(store, hid, 1)
        f2 = await _floor(store, hid, 2)
        await _room(store, f1, "Кухня")
        await _room(store, f1, "Спальня")
        await _room(store, f2, "Чердак")

        rooms = await store.list_by_parent(Table.ROOMS, "floor_id", f1)
        assert [r.name for r in rooms] == ["Кухня", "Спальня"]
        assert all(isinstance(r, Room) and r.floor_id == f1 for r in rooms)

    @pytest.mark.asyncio
    async def test_list_all_in_insert_order(self, store: PersistentStore):
        for name in ["A", "B", "C"]:
            await _house(store, name)
        assert [h.name for h in await store.list_all(Table.HOUSES)] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_update_merges_patch(self, store: PersistentStore):
        hid = await _house(store)
        fid = await _floor(store, hid)
        rid = await _room(store, fid)

        assert await store.update(Table.ROOMS, rid, {"name": "Гостиная", "width": 250})
        room = await store.get(Table.ROOMS, rid)
        assert room.name == "Гостиная"
        assert room.width == 250
        assert room.height == 100
        assert room.floor_id == fid

    @pytest.mark.asyncio
    async def test_update_missing_returns_false(self, store: PersistentStore):
        assert await store.update(Table.HOUSES, 42, {"name": "X"}) is False

    @pytest.mark.asyncio
    async def test_delete(self, store: PersistentStore):
        hid = await _house(store)
        assert await store.delete(Table.HOUSES, hid) is True
        assert await store.get(Table.HOUSES, hid) is None
        assert await store.delete(Table.HOUSES, hid) is False

    @pytest.mark.asyncio
    async def test_count(self, store: PersistentStore):
        hid = await _house(store)
        other = await _house(store, "Другой")
        await _floor(store, hid, 1)
        await _floor(store, hid, 2)
        await _floor(store, other, 1)
        assert await store.count(Table.FLOORS) == 3
        assert await store.count(Table.FLOORS, "house_id", hid) == 2


class TestRejections:
    @pytest.mark.asyncio
    async def test_unknown_field(self, store: PersistentStore):
        with pytest.raises(ValidationError):
            await store.add(Table.HOUSES, {"name": "A", "created_at": datetime.now(), "owner": "me"})

    @pytest.mark.asyncio
    async def test_wrong_parent_field(self, store: PersistentStore):
        with pytest.raises(ValidationError):
            await store.list_by_parent(Table.ROOMS, "house_id", 1)

    @pytest.mark.asyncio
    async def test_orphan_insert_rejected(self, store: PersistentStore):
        with pytest.raises(StorageError):
            await _floor(store, 12345)
        assert await store.count(Table.FLOORS) == 0

    @pytest.mark.asyncio
    async def test_parent_delete_with_children_rejected(self, store: PersistentStore):
        hid = await _house(store)
        await _floor(store, hid)
        with pytest.raises(StorageError):
            await store.delete(Table.HOUSES, hid)
        assert await store.get(Table.HOUSES, hid) is not None


class TestDeleteBatch:
    @pytest.mark.asyncio
    async def test_children_first(self, store: PersistentStore):
        hid = await _house(store)
        fid = await _floor(store, hid)
        rid = await _room(store, fid)

        removed = await store.delete_batch([(Table.ROOMS, [rid]), (Table.FLOORS, [fid]), (Table.HOUSES, [hid])])
        assert removed == 3
        for table in (Table.HOUSES, Table.FLOORS, Table.ROOMS):
            assert await store.count(table) == 0

    @pytest.mark.asyncio
    async def test_failure_rolls_back_whole_batch(self, store: PersistentStore):
        hid = await _house(store)
        fid = await _floor(store, hid)
        rid = await _room(store, fid)

        # the floor still has a room when it is deleted, so the batch fails
        with pytest.raises(StorageError):
            await store.delete_batch([(Table.FLOORS, [fid]), (Table.ROOMS, [rid])])
        assert await store.get(Table.HOUSES, hid) is not None
        assert await store.get(Table.FLOORS, fid) is not None
        assert await store.get(Table.ROOMS, rid) is not None

    @pytest.mark.asyncio
    async def test_empty_steps_skipped(self, store: PersistentStore):
        assert await store.delete_batch([(Table.ITEMS, []), (Table.FURNITURE, [])]) == 0


class TestFileDatabase:
    @pytest.mark.asyncio
    async def test_data_survives_reopen(self, tmp_path: Path):
        path = tmp_path / "nested" / "homestore.db"
        s = PersistentStore(path)
        hid = await _house(s, "Постоянный")
        s.close()

        reopened = PersistentStore(path)
        try:
            house = await reopened.get(Table.HOUSES, hid)
            assert house.name == "Постоянный"
        finally:
            reopened.close()

    def test_unopenable_path_raises_storage_error(self, tmp_path: Path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(StorageError):
            PersistentStore(blocker / "homestore.db")
