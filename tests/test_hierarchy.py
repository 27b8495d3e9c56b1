"""Tests for HierarchyManager: selection, validation and cascade deletes."""

from __future__ import annotations

from datetime import datetime

import pytest

from homestore import (AppConfig, ColorPolicy, HierarchyManager, PreconditionError, Room,
                       StorageError, Table, ValidationError)
from conftest import ROOM


async def _open_new_house(manager: HierarchyManager, name: str = "Дом"):
    hid = await manager.add_house(name)
    await manager.select_house(next(h for h in manager.houses if h.id == hid))
    return hid


async def _row_counts(manager: HierarchyManager) -> dict:
    return {t: await manager.store.count(t) for t in Table}


class TestLoading:
    @pytest.mark.asyncio
    async def test_initialize_empty(self, manager: HierarchyManager):
        await manager.initialize()
        assert manager.houses == []
        assert manager.current_house is None

    @pytest.mark.asyncio
    async def test_initialize_opens_first_house_and_floor(self, furnished: HierarchyManager, config):
        fresh = HierarchyManager(furnished.store, config)
        await fresh.initialize()
        assert fresh.current_house.name == "Дача"
        assert fresh.current_floor is not None
        assert [r.name for r in fresh.rooms] == ["Кухня"]
        assert fresh.selected_room is None

    @pytest.mark.asyncio
    async def test_listeners_notified(self, manager: HierarchyManager):
        calls = []
        manager.subscribe(lambda: calls.append(len(manager.houses)))
        await manager.add_house("A")
        await manager.add_house("B")
        assert calls == [1, 2]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, manager: HierarchyManager):
        calls = []
        cb = lambda: calls.append(1)
        manager.subscribe(cb)
        manager.unsubscribe(cb)
        await manager.add_house("A")
        assert calls == []


class TestSelection:
    @pytest.mark.asyncio
    async def test_select_house_picks_first_floor(self, manager: HierarchyManager):
        await _open_new_house(manager)
        await manager.add_floor()
        await manager.add_floor()
        house = manager.current_house
        await manager.select_house(house)
        assert manager.current_floor.level == 1

    @pytest.mark.asyncio
    async def test_select_floor_clears_room_selection(self, furnished: HierarchyManager):
        await furnished.add_floor()
        second = furnished.floors[1]
        await furnished.select_floor(second)
        assert furnished.current_floor.id == second.id
        assert furnished.selected_room is None
        assert furnished.rooms == []
        assert furnished.furniture == []
        assert furnished.items == []

    @pytest.mark.asyncio
    async def test_select_room_loads_furniture(self, furnished: HierarchyManager):
        room = furnished.selected_room
        await furnished.select_room(None)
        assert furnished.furniture == []
        await furnished.select_room(room)
        assert [f.name for f in furnished.furniture] == ["Шкаф"]
        assert furnished.selected_furniture is None

    @pytest.mark.asyncio
    async def test_select_room_of_other_floor_rejected(self, furnished: HierarchyManager):
        stranger = Room(id=999, floor_id=12345, name="X", x=0, y=0, width=60, height=60, color="#fff")
        with pytest.raises(PreconditionError):
            await furnished.select_room(stranger)

    @pytest.mark.asyncio
    async def test_select_deleted_room_rejected(self, furnished: HierarchyManager):
        room = furnished.selected_room
        await furnished.store.delete_batch([(Table.ITEMS, [i.id for i in furnished.items]),
                                            (Table.FURNITURE, [f.id for f in furnished.furniture]),
                                            (Table.ROOMS, [room.id])])
        with pytest.raises(PreconditionError):
            await furnished.select_room(room)


class TestAdd:
    @pytest.mark.asyncio
    async def test_floor_levels_count_up(self, manager: HierarchyManager):
        await _open_new_house(manager)
        for _ in range(3):
            await manager.add_floor()
        assert [f.level for f in manager.floors] == [1, 2, 3]
        assert [f.name for f in manager.floors] == ["Этаж 1", "Этаж 2", "Этаж 3"]

    @pytest.mark.asyncio
    async def test_floor_explicit_level_and_name(self, manager: HierarchyManager):
        await _open_new_house(manager)
        await manager.add_floor("Подвал", level=7)
        assert manager.floors[0].level == 7
        assert manager.floors[0].name == "Подвал"

    @pytest.mark.asyncio
    async def test_add_room_round_trip(self, manager: HierarchyManager):
        await _open_new_house(manager)
        await manager.add_floor()
        await manager.select_floor(manager.floors[0])

        rid = await manager.add_room(ROOM)
        rooms = await manager.store.list_by_parent(Table.ROOMS, "floor_id", manager.current_floor.id)
        assert rooms == [Room(id=rid, floor_id=manager.current_floor.id, **ROOM)]
        assert manager.rooms == rooms

    @pytest.mark.asyncio
    async def test_furniture_gets_defaults(self, furnished: HierarchyManager):
        await furnished.add_furniture({"name": "Комод"})
        chest = furnished.furniture[-1]
        assert (chest.x, chest.y, chest.width, chest.height) == (100, 100, 80, 40)
        assert chest.color == furnished.config.editor.default_furniture_color

    @pytest.mark.asyncio
    async def test_item_defaults(self, furnished: HierarchyManager):
        await furnished.add_item({"name": "Ложка"})
        spoon = furnished.items[-1]
        assert spoon.quantity == 1
        assert spoon.photo_ref is None
        assert spoon.added_at is not None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method, data", [
        ("add_floor", None),
        ("add_room", ROOM),
        ("add_furniture", {"name": "Шкаф"}),
        ("add_item", {"name": "Ложка"}),
    ])
    async def test_missing_parent(self, manager: HierarchyManager, method, data):
        args = () if data is None else (data,)
        with pytest.raises(PreconditionError):
            await getattr(manager, method)(*args)
        assert await manager.store.count(Table.HOUSES) == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", None])
    async def test_blank_house_name(self, manager: HierarchyManager, name):
        with pytest.raises(ValidationError):
            await manager.add_house(name)
        assert manager.houses == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("patch", [
        {"width": 50},                 # не больше минимума
        {"height": 10},
        {"x": -1},
        {"width": "wide"},
        {"name": " "},
    ])
    async def test_invalid_room(self, furnished: HierarchyManager, patch):
        before = list(furnished.rooms)
        with pytest.raises(ValidationError):
            await furnished.add_room({**ROOM, **patch})
        assert furnished.rooms == before

    @pytest.mark.asyncio
    async def test_room_missing_geometry(self, furnished: HierarchyManager):
        with pytest.raises(ValidationError):
            await furnished.add_room({"name": "Без размеров"})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -3, 1.5, True])
    async def test_invalid_quantity(self, furnished: HierarchyManager, quantity):
        with pytest.raises(ValidationError):
            await furnished.add_item({"name": "Ложка", "quantity": quantity})

    @pytest.mark.asyncio
    async def test_parent_key_in_data_rejected(self, furnished: HierarchyManager):
        with pytest.raises(ValidationError):
            await furnished.add_room({**ROOM, "floor_id": 999})


class TestColorPolicy:
    async def _room_color(self, store, policy: ColorPolicy, color):
        manager = HierarchyManager(store, AppConfig(color_policy=policy))
        await _open_new_house(manager)
        await manager.add_floor()
        await manager.select_floor(manager.floors[0])
        await manager.add_room({**ROOM, "color": color})
        return manager.rooms[-1].color

    @pytest.mark.asyncio
    async def test_accept_keeps_anything(self, store):
        assert await self._room_color(store, ColorPolicy.ACCEPT, "tomato") == "tomato"

    @pytest.mark.asyncio
    async def test_reject(self, store):
        with pytest.raises(ValidationError):
            await self._room_color(store, ColorPolicy.REJECT, "tomato")

    @pytest.mark.asyncio
    async def test_reject_allows_hex(self, store):
        assert await self._room_color(store, ColorPolicy.REJECT, "#ABC") == "#abc"

    @pytest.mark.asyncio
    async def test_coerce_falls_back_to_default(self, store):
        assert await self._room_color(store, ColorPolicy.COERCE, "tomato") == "#93c5fd"

    @pytest.mark.asyncio
    async def test_empty_color_uses_default(self, store):
        assert await self._room_color(store, ColorPolicy.ACCEPT, "") == "#93c5fd"


class TestUpdate:
    @pytest.mark.asyncio
    async def test_merge_patch(self, furnished: HierarchyManager):
        room = furnished.selected_room
        assert await furnished.update_room(room.id, {"name": "Столовая", "color": "#ffffff"})
        updated = furnished.selected_room
        assert updated.name == "Столовая"
        assert updated.color == "#ffffff"
        assert (updated.x, updated.y, updated.width) == (room.x, room.y, room.width)
        assert furnished.rooms == [updated]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("patch", [{"id": 5}, {"floor_id": 5}, {"area": 3}])
    async def test_locked_or_unknown_fields(self, furnished: HierarchyManager, patch):
        room = furnished.selected_room
        with pytest.raises(ValidationError):
            await furnished.update_room(room.id, patch)
        assert furnished.selected_room == room

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["вчера", datetime(2020, 1, 1)])
    async def test_timestamps_are_read_only(self, furnished: HierarchyManager, value):
        house, item = furnished.current_house, furnished.items[0]
        with pytest.raises(ValidationError):
            await furnished.update_house(house.id, {"created_at": value})
        with pytest.raises(ValidationError):
            await furnished.update_item(item.id, {"added_at": value})
        assert (await furnished.store.get(Table.HOUSES, house.id)).created_at == house.created_at
        assert (await furnished.store.get(Table.ITEMS, item.id)).added_at == item.added_at

    @pytest.mark.asyncio
    async def test_timestamp_not_accepted_on_create(self, furnished: HierarchyManager):
        with pytest.raises(ValidationError):
            await furnished.add_item({"name": "Ложка", "added_at": "вчера"})

    @pytest.mark.asyncio
    async def test_missing_id(self, furnished: HierarchyManager):
        calls = []
        furnished.subscribe(lambda: calls.append(1))
        assert await furnished.update_item(999, {"quantity": 3}) is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_update_item_quantity(self, furnished: HierarchyManager):
        item = furnished.items[0]
        await furnished.update_item(item.id, {"quantity": 9})
        assert furnished.items[0].quantity == 9


class TestCascadeDelete:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("table, pointer", [
        (Table.HOUSES, "current_house"),
        (Table.FLOORS, "current_floor"),
        (Table.ROOMS, "selected_room"),
        (Table.FURNITURE, "selected_furniture"),
    ])
    async def test_no_descendants_left(self, furnished: HierarchyManager, table, pointer):
        target = getattr(furnished, pointer)
        levels = list(Table)
        below = levels[levels.index(table):]

        assert await getattr(furnished, f"delete_{_singular(table)}")(target.id) is True

        counts = await _row_counts(furnished)
        for t in below:
            assert counts[t] == 0, t
        for t in levels[:levels.index(table)]:
            assert counts[t] == 1, t
        assert getattr(furnished, pointer) is None

    @pytest.mark.asyncio
    async def test_delete_room_prunes_selection_below(self, furnished: HierarchyManager):
        await furnished.delete_room(furnished.selected_room.id)
        assert furnished.rooms == []
        assert furnished.selected_room is None
        assert furnished.selected_furniture is None
        assert furnished.furniture == []
        assert furnished.items == []
        assert furnished.current_floor is not None

    @pytest.mark.asyncio
    async def test_delete_item_keeps_selection(self, furnished: HierarchyManager):
        furniture = furnished.selected_furniture
        await furnished.delete_item(furnished.items[0].id)
        assert furnished.items == []
        assert furnished.selected_furniture == furniture

    @pytest.mark.asyncio
    async def test_delete_other_house_keeps_current(self, furnished: HierarchyManager):
        other = await furnished.add_house("Квартира")
        current = furnished.current_house
        await furnished.delete_house(other)
        assert furnished.current_house == current
        assert [h.name for h in furnished.houses] == ["Дача"]
        assert furnished.rooms != []

    @pytest.mark.asyncio
    async def test_missing_id_is_noop(self, furnished: HierarchyManager):
        calls = []
        furnished.subscribe(lambda: calls.append(1))
        before = await _row_counts(furnished)
        rooms = list(furnished.rooms)

        assert await furnished.delete_room(4242) is False

        assert await _row_counts(furnished) == before
        assert furnished.rooms == rooms
        assert calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["delete_house", "delete_floor", "delete_room",
                                        "delete_furniture", "delete_item"])
    async def test_every_delete_of_missing_id_returns_false(self, furnished: HierarchyManager, method):
        calls = []
        furnished.subscribe(lambda: calls.append(1))
        before = await _row_counts(furnished)

        assert await getattr(furnished, method)(4242) is False

        assert await _row_counts(furnished) == before
        assert calls == []

    @pytest.mark.asyncio
    async def test_collect_subtree(self, furnished: HierarchyManager):
        subtree = await furnished.collect_subtree(Table.FLOORS, furnished.current_floor.id)
        assert subtree.total() == 4
        assert [t for t, _ in subtree.delete_steps()] == [Table.ITEMS, Table.FURNITURE,
                                                          Table.ROOMS, Table.FLOORS]

    @pytest.mark.asyncio
    async def test_failed_transaction_leaves_everything(self, furnished: HierarchyManager, monkeypatch):
        before = await _row_counts(furnished)
        house, rooms = furnished.current_house, list(furnished.rooms)

        async def broken(steps):
            raise StorageError("disk full")

        monkeypatch.setattr(furnished.store, "delete_batch", broken)
        with pytest.raises(StorageError):
            await furnished.delete_house(house.id)

        assert await _row_counts(furnished) == before
        assert furnished.current_house == house
        assert furnished.rooms == rooms


def _singular(table: Table) -> str:
    return {Table.HOUSES: "house", Table.FLOORS: "floor", Table.ROOMS: "room",
            Table.FURNITURE: "furniture", Table.ITEMS: "item"}[table]
