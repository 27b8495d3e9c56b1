from __future__ import annotations
from PySide6.QtCore import QPointF, QRectF

from .utils import MIN_ROOM_SIZE


def normalized_rect(anchor: QPointF, cur: QPointF) -> QRectF:
    """Прямоугольник по двум углам; размеры всегда неотрицательные."""
    return QRectF(min(anchor.x(), cur.x()), min(anchor.y(), cur.y()),
                  abs(cur.x() - anchor.x()), abs(cur.y() - anchor.y()))


def rect_of(entity) -> QRectF:
    return QRectF(entity.x, entity.y, entity.width, entity.height)


def rect_contains(r: QRectF, p: QPointF) -> bool:
    # границы включительно
    return (r.left() <= p.x() <= r.left() + r.width() and
            r.top() <= p.y() <= r.top() + r.height())


def exceeds_min_size(r: QRectF, minimum: float = MIN_ROOM_SIZE) -> bool:
    return r.width() > minimum and r.height() > minimum


def clamp_to_canvas(r: QRectF, width: float, height: float) -> QRectF:
    """Часть прямоугольника внутри холста; пустой QRectF, если он целиком снаружи."""
    return r.intersected(QRectF(0, 0, width, height))
