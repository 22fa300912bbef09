"""Interaction state machine for wave annotation.

EditorSession owns the document (committed waves + selection), the undo
history and the current mode. It is the only writer; hit-testing and rule
validation only read from it. Every command runs synchronously and swaps the
document in a single assignment, so a partially applied edit is never
observable.

History policy: one entry immediately before each committing action (wave
completion, insertion, deletion, duplication, drag release). Drag frames
mutate the document without recording, so undoing a drag lands on the
position held before the drag started. Any other committing command (and
undo / redo) first releases a drag in progress, so its entry lands in order.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Sequence

from ewlab.config.settings import EditorConfig
from ewlab.data.types import CandleInput
from ewlab.editor.state import (
    Deleting,
    Document,
    Drag,
    Drawing,
    EditorState,
    Mode,
    SegmentDrag,
    Selecting,
)
from ewlab.ew.core import fibo as fibo_mod
from ewlab.ew.core.errors import DanglingReferenceError, EmptyHistoryError, OutOfRangeError
from ewlab.ew.core.fibo import FiboAnchor, FiboTemplate
from ewlab.ew.core.history import History
from ewlab.ew.core.model import (
    NO_SELECTION,
    DragHandle,
    Point,
    PointSelection,
    SegmentSelection,
    Selection,
    Snapshot,
    WaveKind,
    WavePath,
    WaveSelection,
    Waves,
    append_point,
    create_wave,
    duplicate_wave,
    find_wave,
    insert_point_between,
    now_ms,
    remove_last_point,
    remove_wave,
    replace_point,
    require_wave,
    translate_segment,
    update_wave,
)
from ewlab.ew.core.rules import RuleResult, validate
from ewlab.ew.core.serialize import dumps_snapshot, dumps_waves, loads_snapshot
from ewlab.geometry.hittest import CoordinateTransform, PointHit, SegmentHit, hit_test, hit_test_segment
from ewlab.geometry.snap import snap_point
from ewlab.logging import get_logger

log = get_logger("ewlab.editor")


class EditorSession:
    def __init__(
        self,
        transform: Optional[CoordinateTransform] = None,
        candles: Optional[CandleInput] = None,
        config: Optional[EditorConfig] = None,
    ):
        self.config = config or EditorConfig()
        self.transform = transform
        self.candles = candles
        self.document = Document()
        self.history = History(max_depth=self.config.history_depth)
        self.state: EditorState = Selecting()
        self.drag: Optional[Drag] = None
        self._drag_origin: Optional[Snapshot] = None
        self._drag_moved = False
        self.fibos: List[FiboTemplate] = list(fibo_mod.default_templates())

    # ----------------------------- queries -----------------------------

    @property
    def mode(self) -> Mode:
        return self.state.mode

    @property
    def waves(self) -> Waves:
        return self.document.waves

    @property
    def selection(self) -> Selection:
        return self.document.selection

    @property
    def selected_wave_id(self) -> Optional[str]:
        return self.document.selected_wave_id

    @property
    def selected_wave(self) -> Optional[WavePath]:
        return find_wave(self.waves, self.selected_wave_id)

    @property
    def active_wave(self) -> Optional[WavePath]:
        """The uncommitted wave, once at least one point has been placed."""
        if isinstance(self.state, Drawing) and self.state.partial.points:
            return self.state.partial
        return None

    @property
    def focus_wave(self) -> Optional[WavePath]:
        """Wave the rule panel should show: the one being drawn, else the selection."""
        if isinstance(self.state, Drawing):
            return self.state.partial
        return self.selected_wave

    def snapshot(self) -> Snapshot:
        return Snapshot(ts=now_ms(), waves=self.waves, selected_wave_id=self.selected_wave_id)

    def validate_focused(self) -> List[RuleResult]:
        w = self.focus_wave
        return validate(w, self.config.rules) if w is not None else []

    # ----------------------------- internals -----------------------------

    def _snap(self, pt: Point) -> Point:
        return snap_point(pt, self.config.snap, self.candles, self.transform)

    def _commit(self, waves: Waves, selection: Selection, before: Snapshot) -> None:
        self.history.record(before)
        self.document = Document(waves=waves, selection=selection)

    def _restore(self, snap: Snapshot) -> None:
        sel: Selection = WaveSelection(snap.selected_wave_id) if snap.selected_wave_id else NO_SELECTION
        self.document = Document(waves=tuple(snap.waves), selection=sel)
        self.state = Selecting()
        self._drop_drag()

    def _drop_drag(self) -> None:
        self.drag = None
        self._drag_origin = None
        self._drag_moved = False

    def _to_data(self, x: float, y: float) -> Point:
        if self.transform is None:
            raise OutOfRangeError("no coordinate transform attached")
        t = self.transform.pixel_to_time(x)
        p = self.transform.pixel_to_price(y)
        if t is None or p is None:
            raise OutOfRangeError(f"pixel ({x}, {y}) is outside the drawable range")
        return Point(t=float(t), p=float(p))

    # ----------------------------- modes & drawing -----------------------------

    def set_mode(self, mode: Mode) -> None:
        mode = Mode(mode)
        kind = mode.wave_kind
        if kind is not None:
            self.start_wave(kind)
            return
        self.end_drag()
        self.state = Deleting() if mode is Mode.delete else Selecting()
        log.debug("mode", extra={"mode": mode.value})

    def start_wave(self, kind: WaveKind) -> WavePath:
        kind = WaveKind(kind)
        self.end_drag()
        wave = create_wave(kind, self.config.colors.for_kind(kind))
        self.state = Drawing(kind=kind, partial=wave)
        log.debug("start wave", extra={"kind": kind.value, "wave_id": wave.id})
        return wave

    def add_point_to_active(self, point: Point) -> Optional[WavePath]:
        """Append a snapped point; commits and returns to select on completion."""
        if not isinstance(self.state, Drawing):
            log.debug("add point ignored", extra={"mode": self.mode.value})
            return None
        partial = append_point(self.state.partial, self._snap(point))
        if not partial.is_complete:
            self.state = replace(self.state, partial=partial)
            return partial

        before = self.snapshot()
        self._commit(self.waves + (partial,), WaveSelection(partial.id), before)
        self.state = Selecting()
        log.info("wave committed", extra={"wave_id": partial.id, "kind": partial.kind.value})
        return partial

    def remove_last_active_point(self) -> Optional[WavePath]:
        if not isinstance(self.state, Drawing):
            return None
        partial = remove_last_point(self.state.partial)
        self.state = replace(self.state, partial=partial)
        return partial

    def cancel_active(self) -> bool:
        """Drop the in-progress wave without touching history."""
        if not isinstance(self.state, Drawing):
            return False
        log.debug("draw cancelled", extra={"points": len(self.state.partial.points)})
        self.state = Selecting()
        return True

    # ----------------------------- selection & deletion -----------------------------

    def select_wave(self, wave_id: Optional[str]) -> bool:
        if wave_id is None:
            self.document = replace(self.document, selection=NO_SELECTION)
            return True
        if find_wave(self.waves, wave_id) is None:
            log.debug("select ignored", extra={"wave_id": wave_id, "reason": "dangling"})
            return False
        self.document = replace(self.document, selection=WaveSelection(wave_id))
        return True

    def delete_wave(self, wave_id: str) -> bool:
        if find_wave(self.waves, wave_id) is None:
            log.debug("delete ignored", extra={"wave_id": wave_id, "reason": "dangling"})
            return False
        self.end_drag()
        before = self.snapshot()
        sel = NO_SELECTION if self.selected_wave_id == wave_id else self.selection
        self._commit(remove_wave(self.waves, wave_id), sel, before)
        log.info("wave deleted", extra={"wave_id": wave_id})
        return True

    def delete_selected(self) -> bool:
        wid = self.selected_wave_id
        if wid is None:
            return False
        return self.delete_wave(wid)

    # ----------------------------- history -----------------------------

    def undo(self) -> None:
        """Raises EmptyHistoryError (document untouched) when there is nothing to undo."""
        self.end_drag()
        try:
            prev = self.history.undo(self.snapshot())
        except EmptyHistoryError:
            log.info("nothing to undo")
            raise
        self._restore(prev)

    def redo(self) -> None:
        self.end_drag()
        try:
            nxt = self.history.redo(self.snapshot())
        except EmptyHistoryError:
            log.info("nothing to redo")
            raise
        self._restore(nxt)

    # ----------------------------- import / export -----------------------------

    def export_snapshot(self) -> str:
        return dumps_snapshot(self.snapshot())

    def export_waves(self) -> str:
        return dumps_waves(self.waves)

    def import_snapshot(self, text: str) -> None:
        """Replace the document; raises SchemaError and leaves state untouched on bad input."""
        snap = loads_snapshot(text)
        self._restore(snap)
        self.history.clear()
        log.info("document imported", extra={"waves": len(snap.waves)})

    # ----------------------------- dragging -----------------------------

    def _start_drag(self, drag: Drag, selection: Selection) -> None:
        self.drag = drag
        self._drag_origin = self.snapshot()
        self._drag_moved = False
        self.document = replace(self.document, selection=selection)

    def begin_drag(self, handle: DragHandle) -> bool:
        if not isinstance(self.state, Selecting):
            return False
        try:
            w = require_wave(self.waves, handle.wave_id)
            if not 0 <= handle.point_index < len(w.points):
                raise DanglingReferenceError(f"wave {w.id} has no point {handle.point_index}")
        except DanglingReferenceError as e:
            log.debug("drag ignored", extra={"reason": str(e)})
            return False
        self._start_drag(handle, PointSelection(handle.wave_id, handle.point_index))
        return True

    def begin_segment_drag(self, wave_id: str, a_index: int, b_index: int, anchor: Point) -> bool:
        if not isinstance(self.state, Selecting):
            return False
        try:
            sel = SegmentSelection(wave_id, a_index, b_index)
            w = require_wave(self.waves, wave_id)
            if max(a_index, b_index) >= len(w.points) or min(a_index, b_index) < 0:
                raise DanglingReferenceError(f"wave {wave_id} has no segment {a_index}-{b_index}")
        except (DanglingReferenceError, ValueError) as e:
            log.debug("segment drag ignored", extra={"reason": str(e)})
            return False
        self._start_drag(SegmentDrag(wave_id, a_index, b_index, anchor.t, anchor.p), sel)
        return True

    def apply_drag(self, point: Point) -> bool:
        """Move the dragged handle/segment; never records history."""
        drag = self.drag
        if drag is None:
            return False
        try:
            w = require_wave(self.waves, drag.wave_id)
            if isinstance(drag, DragHandle):
                moved = replace_point(w, drag.point_index, self._snap(point))
            else:
                moved = translate_segment(w, drag.a_index, drag.b_index, point.t - drag.t, point.p - drag.p)
                self.drag = replace(drag, t=point.t, p=point.p)
        except DanglingReferenceError as e:
            log.debug("drag target vanished", extra={"reason": str(e)})
            self._drop_drag()
            return False
        self.document = replace(self.document, waves=update_wave(self.waves, moved))
        self._drag_moved = True
        return True

    def end_drag(self) -> bool:
        """Release: the last snapped position stays and one history entry is recorded."""
        if self.drag is None:
            return False
        moved = self._drag_moved
        if moved and self._drag_origin is not None:
            self.history.record(self._drag_origin)
        self._drop_drag()
        return moved

    # ----------------------------- insertion & duplication -----------------------------

    def insert_point(self, wave_id: str, index_a: int, index_b: int, point: Point) -> Optional[WavePath]:
        try:
            w = require_wave(self.waves, wave_id)
            nw = insert_point_between(w, index_a, index_b, self._snap(point))
        except DanglingReferenceError as e:
            log.debug("insert ignored", extra={"reason": str(e)})
            return None
        self.end_drag()
        before = self.snapshot()
        at = min(index_a, index_b) + 1
        self._commit(update_wave(self.waves, nw), PointSelection(wave_id, at), before)
        self.fibos = [fibo_mod.shifted_for_insert(f, wave_id, at) for f in self.fibos]
        return nw

    def insert_midpoint(self) -> Optional[WavePath]:
        sel = self.selection
        if not isinstance(sel, SegmentSelection):
            return None
        w = find_wave(self.waves, sel.wave_id)
        if w is None or max(sel.a_index, sel.b_index) >= len(w.points):
            return None
        a, b = w.points[sel.a_index], w.points[sel.b_index]
        mid = Point(t=(a.t + b.t) / 2, p=(a.p + b.p) / 2)
        return self.insert_point(sel.wave_id, sel.a_index, sel.b_index, mid)

    def duplicate_selected(self) -> Optional[WavePath]:
        w = self.selected_wave
        if w is None:
            return None
        palette = self.config.colors.palette
        idx = self.waves.index(w)
        color = palette[(idx + 1) % len(palette)] if palette else w.color
        dup = duplicate_wave(w, color)
        self.end_drag()
        before = self.snapshot()
        self._commit(self.waves + (dup,), WaveSelection(dup.id), before)
        return dup

    # ----------------------------- pixel-level events -----------------------------

    def click(self, x: float, y: float) -> bool:
        """Single click; returns False when the event was skipped."""
        try:
            if isinstance(self.state, Drawing):
                return self.add_point_to_active(self._to_data(x, y)) is not None
        except OutOfRangeError as e:
            log.debug("click skipped", extra={"reason": str(e)})
            return False
        if self.transform is None:
            return False
        hit = hit_test(x, y, self.waves, self.transform, self.config.hit)
        if isinstance(self.state, Deleting):
            if hit is None:
                return False
            self.delete_wave(hit.wave_id)
            self.state = Selecting()
            return True
        self.document = replace(self.document, selection=_selection_for(hit))
        return True

    def pointer_down(self, x: float, y: float) -> bool:
        if not isinstance(self.state, Selecting) or self.transform is None:
            return False
        hit = hit_test(x, y, self.waves, self.transform, self.config.hit)
        if isinstance(hit, PointHit):
            return self.begin_drag(DragHandle(hit.wave_id, hit.index))
        if isinstance(hit, SegmentHit):
            try:
                anchor = self._to_data(x, y)
            except OutOfRangeError:
                self.document = replace(self.document, selection=_selection_for(hit))
                return False
            return self.begin_segment_drag(hit.wave_id, hit.a_index, hit.b_index, anchor)
        self.document = replace(self.document, selection=NO_SELECTION)
        return False

    def pointer_move(self, x: float, y: float) -> bool:
        if self.drag is None:
            return False
        try:
            pt = self._to_data(x, y)
        except OutOfRangeError as e:
            log.debug("drag frame skipped", extra={"reason": str(e)})
            return False
        return self.apply_drag(pt)

    def pointer_up(self) -> bool:
        return self.end_drag()

    def double_click(self, x: float, y: float) -> Optional[WavePath]:
        """Split the segment under the cursor at the cursor position."""
        if not isinstance(self.state, Selecting) or self.transform is None:
            return None
        seg = hit_test_segment(x, y, self.waves, self.transform, self.config.hit)
        if seg is None:
            return None
        try:
            pt = self._to_data(x, y)
        except OutOfRangeError as e:
            log.debug("insert skipped", extra={"reason": str(e)})
            return None
        return self.insert_point(seg.wave_id, seg.a_index, seg.b_index, pt)

    def key(self, name: str, ctrl: bool = False) -> bool:
        """Keyboard shortcuts: Escape, i, Delete/Backspace, Ctrl+D, Ctrl+Z, Ctrl+Y."""
        k = name.lower()
        if k == "escape":
            return self.cancel_active()
        if k in ("delete", "backspace"):
            return self.delete_selected()
        if k == "i" and not ctrl:
            return self.insert_midpoint() is not None
        if not ctrl:
            return False
        if k == "d":
            return self.duplicate_selected() is not None
        if k in ("z", "y"):
            step = self.undo if k == "z" else self.redo
            try:
                step()
            except EmptyHistoryError:
                return False
            return True
        return False

    # ----------------------------- fibonacci templates -----------------------------

    def _fibo_index(self, fibo_id: str) -> int:
        for i, f in enumerate(self.fibos):
            if f.id == fibo_id:
                return i
        raise DanglingReferenceError(f"no fibo template {fibo_id}")

    def add_fibo_template(self, name: str = "Custom", ratios: Optional[Sequence[float]] = None, **kw) -> FiboTemplate:
        tpl = fibo_mod.new_template(name=name, ratios=ratios, **kw)
        self.fibos.append(tpl)
        return tpl

    def toggle_fibo(self, fibo_id: str, visible: Optional[bool] = None) -> bool:
        try:
            i = self._fibo_index(fibo_id)
        except DanglingReferenceError:
            return False
        self.fibos[i] = fibo_mod.toggled(self.fibos[i], visible)
        return True

    def anchor_fibo_to_selection(self, fibo_id: str) -> bool:
        sel = self.selection
        if not isinstance(sel, SegmentSelection):
            return False
        try:
            i = self._fibo_index(fibo_id)
        except DanglingReferenceError:
            return False
        self.fibos[i] = fibo_mod.anchored(self.fibos[i], FiboAnchor(sel.wave_id, sel.a_index, sel.b_index))
        return True

    def visible_fibo_levels(self) -> List[tuple]:
        """(template id, ratio, price) for every visible anchored template."""
        out = []
        for f in self.fibos:
            if not f.visible:
                continue
            out.extend((f.id, r, px) for r, px in fibo_mod.fibo_levels(f, self.waves))
        return out


def _selection_for(hit) -> Selection:
    if isinstance(hit, PointHit):
        return PointSelection(hit.wave_id, hit.index)
    if isinstance(hit, SegmentHit):
        return SegmentSelection(hit.wave_id, hit.a_index, hit.b_index)
    return NO_SELECTION
