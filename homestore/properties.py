# homestore/properties.py
from __future__ import annotations
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QFormLayout, QLineEdit, QComboBox, QSpinBox, QDialog,
    QDialogButtonBox, QListWidget, QListWidgetItem, QLabel, QHBoxLayout, QPushButton, QGroupBox,
    QMessageBox
)

from .hierarchy import HierarchyManager
from .tasks import AsyncRunner
from .utils import ROOM_PRESET_COLORS


class RoomDraftDialog(QDialog):
    """Название и цвет новой комнаты. Пока диалог открыт, черновик не сохранён."""

    def __init__(self, width: float, height: float, color: str, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Новая комната")
        self.setModal(True)
        lay = QFormLayout(self)

        self.ed_name = QLineEdit()
        self.ed_name.setPlaceholderText("Например: спальня, кухня, кабинет")
        self.cmb_color = QComboBox()
        self.cmb_color.setEditable(True)   # свой цвет можно вписать текстом
        for title, value in ROOM_PRESET_COLORS:
            self.cmb_color.addItem(f"{title}  {value}", value)
        idx = self.cmb_color.findData(color)
        if idx >= 0:
            self.cmb_color.setCurrentIndex(idx)
        else:
            self.cmb_color.setEditText(color)

        lay.addRow(QLabel(f"Размер: {round(width)} × {round(height)}"))
        lay.addRow("Название:", self.ed_name)
        lay.addRow("Цвет:", self.cmb_color)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        lay.addRow(buttons)
        self.ed_name.setFocus()

    def values(self):
        data = self.cmb_color.currentData()
        text = self.cmb_color.currentText()
        color = data if data and text.endswith(data) else text.strip()
        return self.ed_name.text(), color


class InventoryPanel(QWidget):
    """Этажи, выбранная комната, её мебель и вещи в выбранной мебели."""

    def __init__(self, manager: HierarchyManager, runner: AsyncRunner, parent=None):
        super().__init__(parent)
        self.manager = manager
        self.runner = runner

        self.setMinimumWidth(280)
        root = QVBoxLayout(self)
        root.setContentsMargins(8, 8, 8, 8)
        root.setSpacing(10)

        self.lbl_title = QLabel("Дом не выбран")
        self.lbl_title.setStyleSheet("font-weight: 600;")
        root.addWidget(self.lbl_title)

        # ------- Этажи -------
        grp_floor = QGroupBox("Этажи")
        ff = QVBoxLayout(grp_floor)
        self.cmb_floors = QComboBox()
        row = QHBoxLayout()
        self.ed_floor_name = QLineEdit(); self.ed_floor_name.setPlaceholderText("Название (необязательно)")
        self.btn_add_floor = QPushButton("Добавить")
        self.btn_del_floor = QPushButton("Удалить")
        row.addWidget(self.ed_floor_name, 1); row.addWidget(self.btn_add_floor); row.addWidget(self.btn_del_floor)
        ff.addWidget(self.cmb_floors); ff.addLayout(row)
        root.addWidget(grp_floor)

        # ------- Комната -------
        self.grp_room = QGroupBox("Комната")
        fr = QFormLayout(self.grp_room)
        fr.setLabelAlignment(Qt.AlignRight)
        self.ed_room_name = QLineEdit()
        self.ed_room_color = QLineEdit()
        self.lbl_room_size = QLabel("-")
        self.btn_del_room = QPushButton("Удалить комнату")
        fr.addRow("Название:", self.ed_room_name)
        fr.addRow("Цвет:", self.ed_room_color)
        fr.addRow("Размер:", self.lbl_room_size)
        fr.addRow(self.btn_del_room)
        root.addWidget(self.grp_room)

        # ------- Мебель -------
        self.grp_furniture = QGroupBox("Мебель")
        fv = QVBoxLayout(self.grp_furniture)
        self.list_furniture = QListWidget(); self.list_furniture.setMinimumHeight(120)
        self.list_furniture.setStyleSheet("QListWidget{ background:#fafafa; }")
        row = QHBoxLayout()
        self.ed_furniture_name = QLineEdit(); self.ed_furniture_name.setPlaceholderText("Шкаф, диван…")
        self.btn_add_furniture = QPushButton("Добавить")
        self.btn_del_furniture = QPushButton("Удалить")
        row.addWidget(self.ed_furniture_name, 1); row.addWidget(self.btn_add_furniture); row.addWidget(self.btn_del_furniture)
        self.frm_furniture = QWidget()
        fe = QFormLayout(self.frm_furniture); fe.setContentsMargins(0, 0, 0, 0)
        self.ed_furniture_edit = QLineEdit()
        fe.addRow("Выбрано:", self.ed_furniture_edit)
        fv.addWidget(self.list_furniture); fv.addLayout(row); fv.addWidget(self.frm_furniture)
        root.addWidget(self.grp_furniture)

        # ------- Вещи -------
        self.grp_items = QGroupBox("Вещи")
        fi = QVBoxLayout(self.grp_items)
        self.list_items = QListWidget(); self.list_items.setMinimumHeight(120)
        self.list_items.setStyleSheet("QListWidget{ background:#fafafa; }")
        row = QHBoxLayout()
        self.ed_item_name = QLineEdit(); self.ed_item_name.setPlaceholderText("Название")
        self.sp_quantity = QSpinBox(); self.sp_quantity.setRange(1, 99999)
        self.btn_add_item = QPushButton("Добавить")
        self.btn_del_item = QPushButton("Удалить")
        row.addWidget(self.ed_item_name, 1); row.addWidget(self.sp_quantity)
        row.addWidget(self.btn_add_item); row.addWidget(self.btn_del_item)
        self.frm_item = QWidget()
        fe = QFormLayout(self.frm_item); fe.setContentsMargins(0, 0, 0, 0)
        self.ed_item_edit = QLineEdit()
        self.sp_item_edit = QSpinBox(); self.sp_item_edit.setRange(1, 99999)
        fe.addRow("Выбрано:", self.ed_item_edit)
        fe.addRow("Количество:", self.sp_item_edit)
        fi.addWidget(self.list_items); fi.addLayout(row); fi.addWidget(self.frm_item)
        root.addWidget(self.grp_items)
        root.addStretch(1)

        # сигналы
        self.cmb_floors.currentIndexChanged.connect(self._on_floor_picked)
        self.btn_add_floor.clicked.connect(self._add_floor)
        self.btn_del_floor.clicked.connect(self._delete_floor)
        self.ed_room_name.editingFinished.connect(self._apply_room_name)
        self.ed_room_color.editingFinished.connect(self._apply_room_color)
        self.btn_del_room.clicked.connect(self._delete_room)
        self.list_furniture.currentRowChanged.connect(self._on_furniture_picked)
        self.btn_add_furniture.clicked.connect(self._add_furniture)
        self.btn_del_furniture.clicked.connect(self._delete_furniture)
        self.ed_furniture_edit.editingFinished.connect(self._apply_furniture_name)
        self.list_items.currentRowChanged.connect(lambda _row: self._load_item_fields())
        self.ed_item_edit.editingFinished.connect(self._apply_item_name)
        self.sp_item_edit.editingFinished.connect(self._apply_item_quantity)
        self.btn_add_item.clicked.connect(self._add_item)
        self.btn_del_item.clicked.connect(self._delete_item)

        manager.subscribe(self.refresh)
        self.refresh()

    # ---------- API ----------
    def detach(self):
        self.manager.unsubscribe(self.refresh)

    def refresh(self):
        m = self.manager
        widgets = (self.cmb_floors, self.list_furniture, self.list_items, self.ed_room_name, self.ed_room_color)
        for w in widgets:
            w.blockSignals(True)

        self.lbl_title.setText(m.current_house.name if m.current_house else "Дом не выбран")

        self.cmb_floors.clear()
        for fl in m.floors:
            self.cmb_floors.addItem(fl.name, fl.id)
        # без выбранного этажа комбобокс пуст, иначе первый пункт нельзя выбрать
        self.cmb_floors.setCurrentIndex(self.cmb_floors.findData(m.current_floor.id) if m.current_floor else -1)
        self.btn_del_floor.setEnabled(m.current_floor is not None)

        room = m.selected_room
        self.grp_room.setVisible(room is not None)
        self.grp_furniture.setVisible(room is not None)
        if room is not None:
            self.ed_room_name.setText(room.name)
            self.ed_room_color.setText(room.color)
            self.lbl_room_size.setText(f"{room.width:.0f} × {room.height:.0f}")

        self.list_furniture.clear()
        for f in m.furniture:
            li = QListWidgetItem(f.name)
            li.setData(Qt.UserRole, f.id)
            self.list_furniture.addItem(li)
            if m.selected_furniture is not None and f.id == m.selected_furniture.id:
                self.list_furniture.setCurrentItem(li)

        self.frm_furniture.setVisible(m.selected_furniture is not None)
        if m.selected_furniture is not None:
            self.ed_furniture_edit.setText(m.selected_furniture.name)

        self.grp_items.setVisible(m.selected_furniture is not None)
        keep = self._current_id(self.list_items)
        self.list_items.clear()
        for it in m.items:
            li = QListWidgetItem(f"{it.name}  ×{it.quantity}")
            li.setData(Qt.UserRole, it.id)
            self.list_items.addItem(li)
            if it.id == keep:
                self.list_items.setCurrentItem(li)
        self._load_item_fields()

        for w in widgets:
            w.blockSignals(False)

    # ---------- helpers ----------
    def _confirm(self, text: str) -> bool:
        return QMessageBox.question(self, "Удаление", text) == QMessageBox.Yes

    @staticmethod
    def _current_id(lst: QListWidget) -> Optional[int]:
        li = lst.currentItem()
        return li.data(Qt.UserRole) if li is not None else None

    # ---------- floors ----------
    def _on_floor_picked(self, index: int):
        if index < 0 or index >= len(self.manager.floors):
            return
        floor = self.manager.floors[index]
        if self.manager.current_floor is None or floor.id != self.manager.current_floor.id:
            self.runner.run(self.manager.select_floor(floor), "Этаж")

    def _add_floor(self):
        name = self.ed_floor_name.text().strip() or None
        if self.runner.run(self.manager.add_floor(name), "Новый этаж") is not None:
            self.ed_floor_name.clear()

    def _delete_floor(self):
        floor = self.manager.current_floor
        if floor and self._confirm(f"Удалить «{floor.name}» вместе со всеми комнатами, мебелью и вещами?"):
            self.runner.run(self.manager.delete_floor(floor.id), "Удаление этажа")

    # ---------- room ----------
    def _apply_room_name(self):
        room = self.manager.selected_room
        text = self.ed_room_name.text()
        if room and text.strip() != room.name:
            self.runner.run(self.manager.update_room(room.id, {"name": text}), "Комната")
            self.refresh()

    def _apply_room_color(self):
        room = self.manager.selected_room
        text = self.ed_room_color.text().strip()
        if room and text != room.color:
            self.runner.run(self.manager.update_room(room.id, {"color": text}), "Комната")
            self.refresh()

    def _delete_room(self):
        room = self.manager.selected_room
        if room and self._confirm(f"Удалить «{room.name}»? Мебель и вещи в ней тоже будут удалены."):
            self.runner.run(self.manager.delete_room(room.id), "Удаление комнаты")

    # ---------- furniture ----------
    def _on_furniture_picked(self, row: int):
        furniture = self.manager.furniture[row] if 0 <= row < len(self.manager.furniture) else None
        self.runner.run(self.manager.select_furniture(furniture), "Мебель")

    def _add_furniture(self):
        data = {"name": self.ed_furniture_name.text()}
        if self.runner.run(self.manager.add_furniture(data), "Новая мебель") is not None:
            self.ed_furniture_name.clear()

    def _delete_furniture(self):
        fid = self._current_id(self.list_furniture)
        if fid is not None and self._confirm("Удалить мебель? Все вещи в ней тоже будут удалены."):
            self.runner.run(self.manager.delete_furniture(fid), "Удаление мебели")

    def _apply_furniture_name(self):
        furniture = self.manager.selected_furniture
        text = self.ed_furniture_edit.text()
        if furniture and text.strip() != furniture.name:
            self.runner.run(self.manager.update_furniture(furniture.id, {"name": text}), "Мебель")
            self.refresh()

    # ---------- items ----------
    def _current_item(self):
        iid = self._current_id(self.list_items)
        return next((it for it in self.manager.items if it.id == iid), None)

    def _load_item_fields(self):
        item = self._current_item()
        self.frm_item.setVisible(item is not None)
        if item is not None:
            self.ed_item_edit.setText(item.name)
            self.sp_item_edit.setValue(item.quantity)

    def _apply_item_name(self):
        item = self._current_item()
        text = self.ed_item_edit.text()
        if item and text.strip() != item.name:
            self.runner.run(self.manager.update_item(item.id, {"name": text}), "Вещь")
            self.refresh()

    def _apply_item_quantity(self):
        item = self._current_item()
        qty = self.sp_item_edit.value()
        if item and qty != item.quantity:
            self.runner.run(self.manager.update_item(item.id, {"quantity": qty}), "Вещь")
            self.refresh()

    def _add_item(self):
        data = {"name": self.ed_item_name.text(), "quantity": self.sp_quantity.value()}
        if self.runner.run(self.manager.add_item(data), "Новая вещь") is not None:
            self.ed_item_name.clear(); self.sp_quantity.setValue(1)

    def _delete_item(self):
        iid = self._current_id(self.list_items)
        if iid is not None and self._confirm("Удалить вещь?"):
            self.runner.run(self.manager.delete_item(iid), "Удаление вещи")
