from __future__ import annotations
import math
from typing import Optional, Callable

from PySide6.QtCore import Qt, QRectF, QPointF, Signal
from PySide6.QtGui import QPainter, QPen, QColor, QBrush, QFont, QWheelEvent
from PySide6.QtWidgets import QGraphicsScene, QGraphicsView, QApplication

from .editor import SpatialEditor
from .models import EditorState, RoomDraft
from .render import DrawOp, Op, build_display_list

BG_COLOR = QColor("#ffffff")
OUTSIDE_COLOR = QColor("#F2F4F7")
SCENE_BORDER = QColor("#cbd5e1")
SCENE_BORDER_W = 4


class PlanScene(QGraphicsScene):
    """Холст этажа: рисует display list редактора и передаёт ему события мыши."""

    draftReady = Signal(object)        # RoomDraft

    def __init__(self, editor: SpatialEditor, status_cb: Optional[Callable[[str], None]] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.editor = editor
        self._status_cb = status_cb
        self.setItemIndexMethod(QGraphicsScene.NoIndex)
        cfg = editor.config
        self.setSceneRect(0, 0, cfg.canvas_width, cfg.canvas_height)
        editor.subscribe(self.update)

    # ---- mouse -> editor ----
    def mousePressEvent(self, event):
        if event.button() != Qt.LeftButton:
            return super().mousePressEvent(event)
        p = event.scenePos()
        self.editor.pointer_down(p.x(), p.y())
        event.accept()

    def mouseMoveEvent(self, event):
        if self.editor.state == EditorState.DRAWING:
            p = event.scenePos()
            rect = self.editor.pointer_move(p.x(), p.y())
            if rect is not None and self._status_cb:
                self._status_cb(f"{round(rect.width())} × {round(rect.height())}")
            event.accept()
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if self.editor.state != EditorState.DRAWING:
            return super().mouseReleaseEvent(event)
        p = event.scenePos()
        draft: Optional[RoomDraft] = self.editor.pointer_up(p.x(), p.y())
        event.accept()
        if draft is not None:
            self.draftReady.emit(draft)

    # ---- painting ----
    def drawBackground(self, painter: QPainter, rect: QRectF):
        painter.fillRect(rect, OUTSIDE_COLOR)
        painter.fillRect(self.sceneRect(), BG_COLOR)
        painter.setRenderHint(QPainter.Antialiasing, True)
        for op in build_display_list(self.editor):
            self._paint_op(painter, op, rect)
        painter.setPen(QPen(SCENE_BORDER, SCENE_BORDER_W)); painter.setBrush(Qt.NoBrush); painter.drawRect(self.sceneRect())

    def _paint_op(self, painter: QPainter, op: DrawOp, exposed: QRectF):
        if op.kind == Op.GRID:
            self._paint_grid(painter, op, exposed)
        elif op.kind in (Op.FILL, Op.OVERLAY):
            painter.fillRect(op.rect, QColor(op.color))
        elif op.kind == Op.BORDER:
            pen = QPen(QColor(op.color), op.line_width, Qt.DashLine if op.dashed else Qt.SolidLine)
            painter.setPen(pen); painter.setBrush(Qt.NoBrush)
            painter.drawRect(op.rect)
        elif op.kind == Op.LABEL:
            painter.setPen(QColor(op.color))
            f = QFont(); f.setBold(True); f.setPixelSize(op.font_px)
            painter.setFont(f)
            fm = painter.fontMetrics()
            w = fm.horizontalAdvance(op.text) + 8
            h = fm.height()
            box = QRectF(op.pos.x() - w / 2, op.pos.y() - h / 2, w, h)
            painter.drawText(box, Qt.AlignCenter, op.text)

    def _paint_grid(self, painter: QPainter, op: DrawOp, exposed: QRectF):
        area = op.rect.intersected(exposed)
        if area.isEmpty() or op.step <= 0:
            return
        painter.setPen(QPen(QColor(op.color), op.line_width, Qt.SolidLine, Qt.SquareCap))
        x = math.floor(area.left() / op.step) * op.step
        while x <= area.right():
            painter.drawLine(QPointF(x, area.top()), QPointF(x, area.bottom()))
            x += op.step
        y = math.floor(area.top() / op.step) * op.step
        while y <= area.bottom():
            painter.drawLine(QPointF(area.left(), y), QPointF(area.right(), y))
            y += op.step


class PlanView(QGraphicsView):
    scaleChanged = Signal(float)  # текущее m11()

    def __init__(self, scene: PlanScene):
        super().__init__(scene)
        self.setRenderHint(QPainter.Antialiasing, True)
        self.setViewportUpdateMode(QGraphicsView.FullViewportUpdate)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self.setResizeAnchor(QGraphicsView.AnchorUnderMouse)
        self.setCursor(Qt.CrossCursor)
        self._space_down = False
        self.setBackgroundBrush(QBrush(OUTSIDE_COLOR))

    def wheelEvent(self, event: QWheelEvent):
        if QApplication.keyboardModifiers() & Qt.ControlModifier:
            angle = event.angleDelta().y()
            factor = 1.15 if angle > 0 else 1.0 / 1.15
            self.scale(factor, factor)
            self.scaleChanged.emit(self.transform().m11())
            event.accept()
            return
        super().wheelEvent(event)

    def keyPressEvent(self, event):
        if event.key() == Qt.Key_Space and not self._space_down:
            self._space_down = True
            self.setDragMode(QGraphicsView.ScrollHandDrag)
            event.accept()
            return
        super().keyPressEvent(event)

    def keyReleaseEvent(self, event):
        if event.key() == Qt.Key_Space and self._space_down:
            self._space_down = False
            self.setDragMode(QGraphicsView.NoDrag)
            event.accept()
            return
        super().keyReleaseEvent(event)
