"""SQLAlchemy tables for the inventory database.

Column names keep the camelCase field names of the existing on-disk schema
(houseId, createdAt, photoRef, ...); Python attributes are snake_case and match
the dataclasses in homestore.models.

Foreign keys are declared without ON DELETE actions: cascades are performed
explicitly by the hierarchy manager, descendants first, so SQLite foreign key
enforcement rejects any delete that would leave an orphan.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .models import Table


class InventoryBase(DeclarativeBase):
    pass


class HouseRow(InventoryBase):
    __tablename__ = Table.HOUSES.value

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column("createdAt", DateTime, nullable=False)


class FloorRow(InventoryBase):
    __tablename__ = Table.FLOORS.value

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    house_id: Mapped[int] = mapped_column(
        "houseId", ForeignKey("houses.id"), nullable=False, index=True
    )
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)


class RoomRow(InventoryBase):
    __tablename__ = Table.ROOMS.value

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    floor_id: Mapped[int] = mapped_column(
        "floorId", ForeignKey("floors.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    x: Mapped[float] = mapped_column(Float, nullable=False)
    y: Mapped[float] = mapped_column(Float, nullable=False)
    width: Mapped[float] = mapped_column(Float, nullable=False)
    height: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)


class FurnitureRow(InventoryBase):
    __tablename__ = Table.FURNITURE.value

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(
        "roomId", ForeignKey("rooms.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    x: Mapped[float] = mapped_column(Float, nullable=False)
    y: Mapped[float] = mapped_column(Float, nullable=False)
    width: Mapped[float] = mapped_column(Float, nullable=False)
    height: Mapped[float] = mapped_column(Float, nullable=False)
    color: Mapped[str] = mapped_column(String, nullable=False)


class ItemRow(InventoryBase):
    __tablename__ = Table.ITEMS.value

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    furniture_id: Mapped[int] = mapped_column(
        "furnitureId", ForeignKey("furniture.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    photo_ref: Mapped[Optional[str]] = mapped_column("photoRef", String, nullable=True)
    added_at: Mapped[datetime] = mapped_column("addedAt", DateTime, nullable=False)


ROW_TYPES = {
    Table.HOUSES: HouseRow,
    Table.FLOORS: FloorRow,
    Table.ROOMS: RoomRow,
    Table.FURNITURE: FurnitureRow,
    Table.ITEMS: ItemRow,
}
