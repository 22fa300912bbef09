from __future__ import annotations

from typing import Iterable, Tuple

from ewlab.editor.session import EditorSession
from ewlab.ew.core.model import Point, WaveKind, WavePath
from ewlab.geometry.hittest import LinearTransform


def transform() -> LinearTransform:
    """1 px per second and per price unit; y = 200 - price."""
    return LinearTransform(t0=0, t1=1000, p_lo=0, p_hi=200, width=1000, height=200)


def wave(kind: str, pts: Iterable[Tuple[float, float]], labels=None, wid: str = "w") -> WavePath:
    points = tuple(Point(t, p) for t, p in pts)
    if labels is None:
        seq = ("1", "2", "3", "4", "5") if kind == "impulse" else ("A", "B", "C")
        labels = seq[: len(points)]
    return WavePath(id=wid, kind=WaveKind(kind), points=points, labels=tuple(labels))


def draw(session: EditorSession, kind: str, pts: Iterable[Tuple[float, float]]) -> WavePath:
    session.start_wave(WaveKind(kind))
    out = None
    for t, p in pts:
        out = session.add_point_to_active(Point(t, p))
    return out
