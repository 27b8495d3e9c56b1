# start_window.py
from __future__ import annotations
from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QFrame, QPushButton, QListWidget,
    QListWidgetItem, QMessageBox, QLabel, QLineEdit
)
from homestore import AppConfig, HierarchyManager
from homestore.tasks import AsyncRunner

# ========= THEME (dark tech) =========
ACCENT           = "#22D3EE"   # неон-циан (акцент)
ACCENT_HOVER     = "#1CC3DB"
ACCENT_ACTIVE    = "#18B2C8"

PANEL_BG         = "rgba(11, 18, 32, 0.80)"
PANEL_STROKE     = "rgba(120, 162, 255, 0.35)"
PANEL_RADIUS     = 14
BTN_RADIUS       = 10

FONT_FAMILY      = "Segoe UI, Inter, Roboto, sans-serif"
TEXT_MAIN        = "#E6E7EA"
TEXT_DIM         = "#9AA4B2"
# =====================================


class StartWindow(QWidget):
    """Список домов: создать, удалить, открыть в редакторе."""

    def __init__(self, manager: HierarchyManager, runner: AsyncRunner, config: AppConfig):
        super().__init__()
        self.manager = manager
        self.runner = runner
        self.config = config
        self.setObjectName("StartRoot")
        self.setWindowTitle("HomeStore — дома")
        self.resize(1000, 680)

        root = QVBoxLayout(self); root.setContentsMargins(28, 28, 28, 28); root.setSpacing(0)

        top = QHBoxLayout(); top.setContentsMargins(0, 0, 0, 0)
        title = QLabel("HomeStore"); title.setObjectName("Brand")
        top.addWidget(title); top.addStretch(1)
        self.lbl_db = QLabel(str(config.database_path)); self.lbl_db.setObjectName("Dim")
        top.addWidget(self.lbl_db)
        root.addLayout(top); root.addSpacing(16)

        mid = QHBoxLayout(); mid.setSpacing(24)

        # Карточка «Новый дом»
        actions = QFrame(self); actions.setObjectName("ActionsCard")
        vact = QVBoxLayout(actions); vact.setContentsMargins(28, 24, 28, 24); vact.setSpacing(12)
        cap = QLabel("Новый дом"); cap.setObjectName("CardTitle"); vact.addWidget(cap)
        self.ed_house = QLineEdit(); self.ed_house.setPlaceholderText("Название дома")
        self.btn_new = QPushButton("Создать"); self._style_action_btn(self.btn_new)
        vact.addWidget(self.ed_house); vact.addWidget(self.btn_new); vact.addStretch(1)
        mid.addWidget(actions, 0)

        # Карточка «Мои дома»
        houses = QFrame(self); houses.setObjectName("RecentCard")
        vrec = QVBoxLayout(houses); vrec.setContentsMargins(24, 20, 24, 20); vrec.setSpacing(10)
        rcap = QLabel("Мои дома"); rcap.setObjectName("RecentTitle"); vrec.addWidget(rcap)
        self.list_houses = QListWidget(); self.list_houses.setObjectName("RecentList")
        vrec.addWidget(self.list_houses, 1)
        row = QHBoxLayout()
        self.btn_open = QPushButton("Открыть"); self._style_action_btn(self.btn_open)
        self.btn_delete = QPushButton("Удалить"); self._style_action_btn(self.btn_delete)
        row.addWidget(self.btn_open); row.addWidget(self.btn_delete); row.addStretch(1)
        vrec.addLayout(row)
        mid.addWidget(houses, 1)
        root.addLayout(mid, 1)

        self.btn_new.clicked.connect(self._new)
        self.ed_house.returnPressed.connect(self._new)
        self.btn_open.clicked.connect(self._open)
        self.btn_delete.clicked.connect(self._delete)
        self.list_houses.itemDoubleClicked.connect(lambda _it: self._open())
        self.list_houses.currentRowChanged.connect(lambda _row: self._sync_buttons())

        manager.subscribe(self._load_houses)
        self._load_houses()
        self._apply_qss()

    # ---------- STYLE ----------
    def _apply_qss(self):
        self.setStyleSheet(f"""
        QWidget#StartRoot {{
            background: qlineargradient(x1:0, y1:0, x2:1, y2:1, stop:0 #0B1220, stop:1 #0A0F1D);
            color: {TEXT_MAIN};
            font-family: {FONT_FAMILY};
        }}
        #Brand {{ font-size: 18px; font-weight: 700; color: #E2E8F0; }}
        #Dim {{ color: {TEXT_DIM}; }}
        #ActionsCard, #RecentCard {{
            background: {PANEL_BG};
            border: 1px solid {PANEL_STROKE};
            border-radius: {PANEL_RADIUS}px;
        }}
        #CardTitle, #RecentTitle {{ color: {TEXT_MAIN}; font-weight: 700; }}
        QLineEdit {{
            background: rgba(255,255,255,0.06); color: {TEXT_MAIN};
            border: 1px solid {PANEL_STROKE}; border-radius: 8px; padding: 6px 8px;
        }}
        QPushButton[role="Action"] {{
            background: {ACCENT};
            color: #06202A;
            border: none; border-radius: {BTN_RADIUS}px;
            padding: 10px 14px; font-weight: 700;
        }}
        QPushButton[role="Action"]:hover   {{ background: {ACCENT_HOVER}; }}
        QPushButton[role="Action"]:pressed {{ background: {ACCENT_ACTIVE}; }}
        QPushButton[role="Action"]:disabled{{ background: #2A3B4A; color: #6B7280; }}
        #RecentList {{
            background: rgba(255,255,255,0.06);
            color: {TEXT_MAIN};
            border: 1px solid {PANEL_STROKE};
            border-radius: 10px; padding: 6px;
        }}
        #RecentList::item {{ padding: 7px 10px; color: {TEXT_MAIN}; }}
        #RecentList::item:selected {{
            background: rgba(34, 211, 238, 0.20);
            color: #EFFFFF;
            border-radius: 6px;
        }}
        """)

    def _style_action_btn(self, b: QPushButton):
        b.setProperty("role", "Action")
        b.setCursor(Qt.PointingHandCursor)
        b.setMinimumHeight(36)

    # ---------- DATA ----------
    def _load_houses(self):
        self.list_houses.blockSignals(True)
        self.list_houses.clear()
        for h in self.manager.houses:
            li = QListWidgetItem(f"{h.name}   ·   {h.created_at:%d.%m.%Y}")
            li.setData(Qt.UserRole, h.id)
            self.list_houses.addItem(li)
            if self.manager.current_house is not None and h.id == self.manager.current_house.id:
                self.list_houses.setCurrentItem(li)
        self.list_houses.blockSignals(False)
        self._sync_buttons()

    def _sync_buttons(self):
        has = self.list_houses.currentItem() is not None
        self.btn_open.setEnabled(has)
        self.btn_delete.setEnabled(has)

    def _picked_house(self):
        li = self.list_houses.currentItem()
        if li is None:
            return None
        hid = li.data(Qt.UserRole)
        return next((h for h in self.manager.houses if h.id == hid), None)

    # ---------- ACTIONS ----------
    def _new(self):
        if self.runner.run(self.manager.add_house(self.ed_house.text()), "Новый дом") is not None:
            self.ed_house.clear()

    def _delete(self):
        house = self._picked_house()
        if house is None:
            return
        answer = QMessageBox.question(self, "Удаление",
                                      f"Удалить «{house.name}» со всеми этажами, комнатами, мебелью и вещами?")
        if answer == QMessageBox.Yes:
            self.runner.run(self.manager.delete_house(house.id), "Удаление дома")

    def _open(self):
        house = self._picked_house()
        if house is None:
            return
        if self.manager.current_house is None or house.id != self.manager.current_house.id:
            self.runner.run(self.manager.select_house(house), "Открытие дома")
            if self.manager.current_house is None or self.manager.current_house.id != house.id:
                return
        from homestore_editor import MainWindow
        self.hide()
        self.editor = MainWindow(self.manager, self.runner, self.config)
        self.editor.show()
        self.close()

    def closeEvent(self, event):
        self.manager.unsubscribe(self._load_houses)
        super().closeEvent(event)
