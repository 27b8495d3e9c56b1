"""Pointer state machine that turns canvas gestures into room rectangles.

IDLE --down on empty canvas--> DRAWING --up, big enough--> PENDING_COMMIT
  ^   (down on a room selects it)    |                          |
  |                                  +--up, too small-----------+--> IDLE
  +------------------------- commit / cancel <------------------+

Everything up to commit() is synchronous; commit() is the only step that
reaches the HierarchyManager.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from PySide6.QtCore import QPointF, QRectF

from .config import EditorConfig
from .errors import PreconditionError, ValidationError
from .geometry import clamp_to_canvas, exceeds_min_size, normalized_rect, rect_contains, rect_of
from .hierarchy import HierarchyManager
from .models import EditorState, Room, RoomDraft, RoomId
from .utils import is_blank

logger = logging.getLogger(__name__)


class SpatialEditor:
    def __init__(self, manager: HierarchyManager, config: Optional[EditorConfig] = None,
                 on_select: Optional[Callable[[Optional[Room]], None]] = None):
        self.manager = manager
        self.config = config or manager.config.editor
        self.on_select = on_select

        self.state = EditorState.IDLE
        self.anchor: Optional[QPointF] = None
        self.candidate: Optional[QRectF] = None
        self.draft: Optional[RoomDraft] = None
        self.selected_room: Optional[Room] = manager.selected_room

        self._committing = False
        self._floor_id = manager.current_floor.id if manager.current_floor else None
        self._listeners: List[Callable[[], None]] = []
        manager.subscribe(self._on_manager_change)

    @property
    def rooms(self) -> List[Room]:
        return self.manager.rooms

    def subscribe(self, callback: Callable[[], None]) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def detach(self) -> None:
        self.manager.unsubscribe(self._on_manager_change)
        self._listeners.clear()

    def _changed(self) -> None:
        for cb in list(self._listeners):
            cb()

    # ---- hit-testing ----
    def hit_test(self, x: float, y: float) -> Optional[Room]:
        """Topmost room containing the point; later rooms are drawn over earlier ones."""
        p = QPointF(x, y)
        for room in reversed(self.rooms):
            if rect_contains(rect_of(room), p):
                return room
        return None

    # ---- pointer events ----
    def pointer_down(self, x: float, y: float) -> Optional[Room]:
        if self.state != EditorState.IDLE:
            return None
        room = self.hit_test(x, y)
        self._set_selection(room)
        if room is None:
            self.state = EditorState.DRAWING
            self.anchor = QPointF(x, y)
            self.candidate = None
        self._changed()
        return room

    def pointer_move(self, x: float, y: float) -> Optional[QRectF]:
        if self.state != EditorState.DRAWING:
            return None
        self.candidate = normalized_rect(self.anchor, QPointF(x, y))
        self._changed()
        return self.candidate

    def pointer_up(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[RoomDraft]:
        if self.state != EditorState.DRAWING:
            return None
        if x is not None and y is not None:
            self.candidate = normalized_rect(self.anchor, QPointF(x, y))
        rect = self.candidate
        self.anchor = None
        self.candidate = None
        if rect is not None:
            # комната не выходит за холст
            rect = clamp_to_canvas(rect, self.config.canvas_width, self.config.canvas_height)
        if rect is None or not exceeds_min_size(rect, self.config.min_room_size):
            # случайный клик, не ошибка
            self.state = EditorState.IDLE
            self._changed()
            return None
        self.draft = RoomDraft(rect.x(), rect.y(), rect.width(), rect.height(),
                               name="", color=self.config.default_room_color)
        self.state = EditorState.PENDING_COMMIT
        logger.debug("Draft room %.0f×%.0f at (%.0f, %.0f)",
                     rect.width(), rect.height(), rect.x(), rect.y())
        self._changed()
        return self.draft

    # ---- draft ----
    async def commit(self, name: Optional[str] = None, color: Optional[str] = None) -> RoomId:
        if self.state != EditorState.PENDING_COMMIT or self.draft is None:
            raise PreconditionError("Нет комнаты для сохранения")
        if name is not None:
            self.draft.name = name
        if color is not None:
            self.draft.color = color
        if is_blank(self.draft.name):
            raise ValidationError("Введите название комнаты")
        self._committing = True
        try:
            new_id = await self.manager.add_room(self.draft.as_record())
        finally:
            self._committing = False
        self._reset()
        self._changed()
        return new_id

    def cancel(self) -> bool:
        if self.state == EditorState.IDLE or self._committing:
            return False
        self._reset()
        self._changed()
        return True

    def _reset(self) -> None:
        self.state = EditorState.IDLE
        self.anchor = None
        self.candidate = None
        self.draft = None

    # ---- selection ----
    def _set_selection(self, room: Optional[Room]) -> None:
        self.selected_room = room
        if self.on_select is not None:
            self.on_select(room)

    def _on_manager_change(self) -> None:
        floor_id = self.manager.current_floor.id if self.manager.current_floor else None
        if floor_id != self._floor_id:
            self._floor_id = floor_id
            if self.state != EditorState.IDLE and not self._committing:
                logger.debug("Floor changed, dropping gesture in state %s", self.state)
                self._reset()
        selected = self.manager.selected_room
        if selected is None and self.selected_room is not None:
            selected = next((r for r in self.rooms if r.id == self.selected_room.id), None)
        self.selected_room = selected
        self._changed()
