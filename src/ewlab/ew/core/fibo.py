"""Fibonacci level templates anchored on a wave segment."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

from ewlab.ew.core.model import WavePath, find_wave

CLASSIC_RATIOS: Tuple[float, ...] = (0.382, 0.5, 0.618, 1.0, 1.618)
EXTENDED_RATIOS: Tuple[float, ...] = (0.236, 0.382, 0.5, 0.618, 0.786, 1.0, 1.272, 1.618)


@dataclass(frozen=True)
class FiboAnchor:
    wave_id: str
    a_index: int
    b_index: int


@dataclass(frozen=True)
class FiboTemplate:
    id: str
    name: str
    ratios: Tuple[float, ...]
    visible: bool = True
    color: str = "#a78bfa"
    opacity: float = 0.4
    anchor: Optional[FiboAnchor] = None


def default_templates() -> Tuple[FiboTemplate, ...]:
    return (
        FiboTemplate(
            id="fibo_default", name="Classic", ratios=CLASSIC_RATIOS,
            visible=False, color="#9ca3af", opacity=0.5,
        ),
    )


def new_template(
    name: str = "Custom",
    ratios: Optional[Sequence[float]] = None,
    visible: bool = True,
    color: str = "#a78bfa",
    opacity: float = 0.4,
) -> FiboTemplate:
    return FiboTemplate(
        id=f"fibo_{uuid.uuid4().hex[:8]}",
        name=name,
        ratios=tuple(float(r) for r in (ratios or EXTENDED_RATIOS)),
        visible=visible,
        color=color,
        opacity=max(0.0, min(1.0, float(opacity))),
    )


def toggled(tpl: FiboTemplate, visible: Optional[bool] = None) -> FiboTemplate:
    return replace(tpl, visible=(not tpl.visible) if visible is None else bool(visible))


def anchored(tpl: FiboTemplate, anchor: Optional[FiboAnchor]) -> FiboTemplate:
    return replace(tpl, anchor=anchor)


def shifted_for_insert(tpl: FiboTemplate, wave_id: str, at: int) -> FiboTemplate:
    """Keep the anchor on the same points after a point is inserted at index `at`."""
    a = tpl.anchor
    if a is None or a.wave_id != wave_id:
        return tpl
    ia = a.a_index + 1 if a.a_index >= at else a.a_index
    ib = a.b_index + 1 if a.b_index >= at else a.b_index
    return replace(tpl, anchor=FiboAnchor(wave_id, ia, ib))


def fibo_levels(tpl: FiboTemplate, waves: Sequence[WavePath]) -> List[Tuple[float, float]]:
    """(ratio, price) pairs along the anchored segment; empty if the anchor dangles."""
    if tpl.anchor is None:
        return []
    w = find_wave(waves, tpl.anchor.wave_id)
    n = len(w.points) if w is not None else 0
    if w is None or not (0 <= tpl.anchor.a_index < n and 0 <= tpl.anchor.b_index < n):
        return []
    pa = w.points[tpl.anchor.a_index].p
    pb = w.points[tpl.anchor.b_index].p
    return [(r, pa + (pb - pa) * r) for r in tpl.ratios]
