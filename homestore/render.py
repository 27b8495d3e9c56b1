"""Display list for the plan canvas.

The Qt scene paints exactly what build_display_list() returns, in order:
grid, then every committed room (fill, selection overlay, border, name), then
the rectangle being drawn with a dashed border and its live size above it.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from PySide6.QtCore import QPointF, QRectF

from .geometry import rect_of
from .models import EditorState

# ===== Colors (QColor-compatible, #AARRGGBB where translucent) =====
GRID_COLOR = "#e5e7eb"
ROOM_BORDER = "#64748b"
ROOM_BORDER_SELECTED = "#0ea5e9"
SELECTION_OVERLAY = "#260ea5e9"
LABEL_COLOR = "#1e293b"
DRAFT_FILL = "#4d93c5fd"
DRAFT_BORDER = "#0ea5e9"

ROOM_BORDER_W = 2.0
ROOM_BORDER_SELECTED_W = 4.0
DRAFT_BORDER_W = 3.0
ROOM_LABEL_PX = 18
SIZE_LABEL_PX = 14
SIZE_LABEL_GAP = 10.0


class Op:
    GRID = "grid"
    FILL = "fill"
    OVERLAY = "overlay"
    BORDER = "border"
    LABEL = "label"


@dataclass(frozen=True)
class DrawOp:
    kind: str
    rect: QRectF
    color: str
    line_width: float = 0.0
    dashed: bool = False
    text: str = ""
    pos: Optional[QPointF] = None   # центр подписи
    font_px: int = 0
    step: float = 0.0
    room_id: Optional[int] = None


def build_display_list(editor) -> List[DrawOp]:
    cfg = editor.config
    canvas = QRectF(0, 0, cfg.canvas_width, cfg.canvas_height)
    ops: List[DrawOp] = [DrawOp(Op.GRID, canvas, GRID_COLOR, line_width=1.0, step=cfg.grid_step)]

    selected_id = editor.selected_room.id if editor.selected_room else None
    for room in editor.rooms:
        r = rect_of(room)
        is_sel = room.id == selected_id
        ops.append(DrawOp(Op.FILL, r, room.color or cfg.default_room_color, room_id=room.id))
        if is_sel:
            ops.append(DrawOp(Op.OVERLAY, r, SELECTION_OVERLAY, room_id=room.id))
        ops.append(DrawOp(Op.BORDER, r,
                          ROOM_BORDER_SELECTED if is_sel else ROOM_BORDER,
                          line_width=ROOM_BORDER_SELECTED_W if is_sel else ROOM_BORDER_W,
                          room_id=room.id))
        ops.append(DrawOp(Op.LABEL, r, LABEL_COLOR, text=room.name, pos=r.center(),
                          font_px=ROOM_LABEL_PX, room_id=room.id))

    cand = editor.candidate
    if editor.state == EditorState.DRAWING and cand is not None:
        ops.append(DrawOp(Op.FILL, cand, DRAFT_FILL))
        ops.append(DrawOp(Op.BORDER, cand, DRAFT_BORDER, line_width=DRAFT_BORDER_W, dashed=True))
        ops.append(DrawOp(Op.LABEL, cand, DRAFT_BORDER,
                          text=f"{round(cand.width())} × {round(cand.height())}",
                          pos=QPointF(cand.center().x(), cand.top() - SIZE_LABEL_GAP),
                          font_px=SIZE_LABEL_PX))
    return ops
