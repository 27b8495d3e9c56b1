#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations
import sys, logging
from PySide6.QtCore import Qt, QSize
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication, QMainWindow, QToolBar, QStatusBar, QMessageBox, QDockWidget, QStyle
)
from homestore import (AppConfig, EditorState, HierarchyManager, PersistentStore, SpatialEditor,
                       StorageError, load_config, seed_demo_data)
from homestore.properties import InventoryPanel, RoomDraftDialog
from homestore.scene import PlanScene, PlanView
from homestore.tasks import AsyncRunner

logger = logging.getLogger("homestore.app")

_STATE_TEXT = {
    EditorState.IDLE: "Готово",
    EditorState.DRAWING: "Рисование комнаты",
    EditorState.PENDING_COMMIT: "Новая комната ждёт названия",
}


class MainWindow(QMainWindow):
    def __init__(self, manager: HierarchyManager, runner: AsyncRunner, config: AppConfig):
        super().__init__()
        self.manager = manager
        self.runner = runner
        self.config = config
        self.setWindowTitle("HomeStore — план дома")
        self.resize(1400, 900)

        # 1) Редактор/сцена/вью
        self.editor = SpatialEditor(manager, config.editor, on_select=self._on_room_clicked)
        self.scene = PlanScene(self.editor, status_cb=self._status)
        self.view = PlanView(self.scene)
        self.setCentralWidget(self.view)
        self.scene.draftReady.connect(self._ask_draft_details)

        # 2) Панель инвентаря
        self.props_panel = InventoryPanel(manager, runner, self)
        self.props_dock = QDockWidget("Инвентарь", self)
        self.props_dock.setWidget(self.props_panel)
        self.props_dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.RightDockWidgetArea)
        self.props_dock.setMinimumWidth(300)
        self.props_dock.setMaximumWidth(560)
        self.addDockWidget(Qt.RightDockWidgetArea, self.props_dock)

        # 3) Тулбар/статус
        self._build_toolbar()
        self.setStatusBar(QStatusBar(self))
        self.view.scaleChanged.connect(lambda s: self._update_status(f"Масштаб: {int(s*100)}%"))
        self.editor.subscribe(self._update_status)
        self._update_status()

    def _build_toolbar(self):
        tb = QToolBar("Панель", self)
        tb.setMovable(False)
        tb.setIconSize(QSize(18, 18))
        tb.setToolButtonStyle(Qt.ToolButtonTextBesideIcon)
        self.addToolBar(Qt.TopToolBarArea, tb)
        style = self.style()

        self.act_delete_room = QAction(style.standardIcon(QStyle.SP_TrashIcon), "Удалить комнату", self)
        self.act_delete_room.setShortcut(QKeySequence.Delete)
        self.act_delete_room.triggered.connect(self._delete_selected_room)

        self.act_cancel = QAction(style.standardIcon(QStyle.SP_DialogCancelButton), "Отменить рисование", self)
        self.act_cancel.setShortcut(QKeySequence("Esc"))
        self.act_cancel.triggered.connect(self.editor.cancel)

        self.act_toggle_props = QAction(style.standardIcon(QStyle.SP_FileDialogInfoView),
                                        "Инвентарь", self, checkable=True)
        self.act_toggle_props.setChecked(True)
        self.act_toggle_props.toggled.connect(lambda on: (self.props_dock.show() if on else self.props_dock.hide()))
        self.props_dock.visibilityChanged.connect(lambda vis: self.act_toggle_props.setChecked(vis))

        self.act_welcome = QAction(style.standardIcon(QStyle.SP_ArrowBack), "Дома", self)
        self.act_welcome.triggered.connect(self._back_to_welcome)

        tb.addAction(self.act_welcome)
        tb.addSeparator()
        tb.addAction(self.act_delete_room)
        tb.addAction(self.act_cancel)
        tb.addSeparator()
        tb.addAction(self.act_toggle_props)

    # ---- editor hooks ----
    def _on_room_clicked(self, room):
        current = self.manager.selected_room
        if (room is None and current is None) or (room and current and room.id == current.id):
            return
        self.runner.run(self.manager.select_room(room), "Выбор комнаты")

    def _ask_draft_details(self, draft):
        # диалог остаётся открытым, пока название не пройдёт проверку или пользователь не отменит
        while self.editor.state == EditorState.PENDING_COMMIT:
            dlg = RoomDraftDialog(draft.width, draft.height, draft.color, self)
            dlg.ed_name.setText(draft.name)
            if dlg.exec() != RoomDraftDialog.Accepted:
                self.editor.cancel()
                return
            name, color = dlg.values()
            new_id = self.runner.run(self.editor.commit(name, color), "Новая комната")
            if new_id is not None:
                self._status(f"Комната «{name.strip()}» сохранена")

    def _delete_selected_room(self):
        room = self.manager.selected_room
        if room is None:
            return
        answer = QMessageBox.question(self, "Удаление",
                                      f"Удалить «{room.name}»? Мебель и вещи в ней тоже будут удалены.")
        if answer == QMessageBox.Yes:
            self.runner.run(self.manager.delete_room(room.id), "Удаление комнаты")

    def _back_to_welcome(self):
        from start_window import StartWindow
        self.close()
        self._welcome = StartWindow(self.manager, self.runner, self.config)   # удерживаем ссылку
        self._welcome.show()

    def closeEvent(self, event):
        self.editor.detach()
        self.props_panel.detach()
        super().closeEvent(event)

    # ---- status ----
    def _status(self, text: str):
        self.statusBar().showMessage(text, 3000)

    def _update_status(self, extra: str = ""):
        floor = self.manager.current_floor
        parts = [
            f"Режим: {_STATE_TEXT.get(self.editor.state, self.editor.state)}",
            f"Этаж: {floor.name if floor else '—'}",
            f"Комнат: {len(self.manager.rooms)}",
        ]
        if extra:
            parts.append(extra)
        self.statusBar().showMessage(" | ".join(parts))


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def main():
    config = load_config()
    _setup_logging(config.log_level)

    app = QApplication(sys.argv)
    runner = AsyncRunner()
    try:
        store = PersistentStore(config.database_path)
    except StorageError as e:
        logger.error("Cannot open database: %s", e)
        QMessageBox.critical(None, "Ошибка базы данных", str(e))
        return 1
    if config.seed_demo_data:
        runner.run(seed_demo_data(store), "Демо-данные")
    manager = HierarchyManager(store, config)
    runner.run(manager.initialize(), "Загрузка")

    from start_window import StartWindow
    win = StartWindow(manager, runner, config)
    win.show()
    code = app.exec()
    runner.close()
    store.close()
    return code


if __name__ == "__main__":
    sys.exit(main())
