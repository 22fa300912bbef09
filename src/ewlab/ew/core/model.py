"""Canonical wave annotation models.

Everything here is a value: waves are frozen dataclasses holding tuples, so
an edit always produces a new WavePath and a collection snapshot is just the
tuple of waves it saw. Nothing in this module mutates its inputs.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Sequence, Tuple, Union

from ewlab.ew.core.errors import DanglingReferenceError


class WaveKind(str, Enum):
    impulse = "impulse"
    correction = "correction"


IMPULSE_LABELS: Tuple[str, ...] = ("1", "2", "3", "4", "5")
CORRECTION_LABELS: Tuple[str, ...] = ("A", "B", "C")


def canonical_labels(kind: WaveKind) -> Tuple[str, ...]:
    return IMPULSE_LABELS if WaveKind(kind) is WaveKind.impulse else CORRECTION_LABELS


def completion_threshold(kind: WaveKind) -> int:
    """Number of clicks that complete a wave of this kind."""
    return len(canonical_labels(kind))


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Point:
    t: float  # epoch seconds
    p: float  # price


@dataclass(frozen=True)
class WavePath:
    id: str
    kind: WaveKind
    points: Tuple[Point, ...] = ()
    labels: Tuple[str, ...] = ()
    color: str = "#22c55e"
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_complete(self) -> bool:
        return len(self.points) >= completion_threshold(self.kind)

    @property
    def prices(self) -> Tuple[float, ...]:
        return tuple(pt.p for pt in self.points)

    def segments(self) -> Tuple[Tuple[int, int], ...]:
        return tuple((i, i + 1) for i in range(len(self.points) - 1))

    def labels_are_canonical(self) -> bool:
        seq = canonical_labels(self.kind)
        return (
            len(self.labels) <= len(self.points)
            and tuple(self.labels) == seq[: len(self.labels)]
        )


Waves = Tuple[WavePath, ...]


# ----------------------------- selection -----------------------------

@dataclass(frozen=True)
class NoSelection:
    wave_id: Optional[str] = field(default=None, init=False)


@dataclass(frozen=True)
class WaveSelection:
    wave_id: str


@dataclass(frozen=True)
class PointSelection:
    wave_id: str
    index: int


@dataclass(frozen=True)
class SegmentSelection:
    wave_id: str
    a_index: int
    b_index: int

    def __post_init__(self) -> None:
        if abs(self.a_index - self.b_index) != 1:
            raise ValueError(f"segment endpoints must be adjacent: {self.a_index}, {self.b_index}")


Selection = Union[NoSelection, WaveSelection, PointSelection, SegmentSelection]
NO_SELECTION = NoSelection()


@dataclass(frozen=True)
class DragHandle:
    """The point being relocated during a pointer-down/drag/up cycle."""
    wave_id: str
    point_index: int


@dataclass(frozen=True)
class Snapshot:
    ts: int
    waves: Waves
    selected_wave_id: Optional[str] = None


# ----------------------------- operations -----------------------------

def create_wave(kind: WaveKind, color: str) -> WavePath:
    ts = now_ms()
    return WavePath(id=str(uuid.uuid4()), kind=WaveKind(kind), color=color, created_at=ts, updated_at=ts)


def append_point(wave: WavePath, point: Point) -> WavePath:
    """Append a point and its canonical label; no-op once the wave is complete."""
    if wave.is_complete:
        return wave
    seq = canonical_labels(wave.kind)
    labels = wave.labels
    if len(labels) < len(seq):
        labels = labels + (seq[len(labels)],)
    return replace(wave, points=wave.points + (point,), labels=labels, updated_at=now_ms())


def _check_index(wave: WavePath, index: int) -> None:
    if not 0 <= index < len(wave.points):
        raise DanglingReferenceError(f"wave {wave.id} has no point {index}")


def replace_point(wave: WavePath, index: int, point: Point) -> WavePath:
    _check_index(wave, index)
    pts = list(wave.points)
    pts[index] = point
    return replace(wave, points=tuple(pts), updated_at=now_ms())


def insert_point_between(wave: WavePath, index_a: int, index_b: int, point: Point) -> WavePath:
    """Split segment (a, b) with an unlabeled structural point."""
    _check_index(wave, index_a)
    _check_index(wave, index_b)
    if abs(index_a - index_b) != 1:
        raise DanglingReferenceError(f"points {index_a} and {index_b} are not adjacent")
    at = min(index_a, index_b) + 1
    pts = wave.points[:at] + (point,) + wave.points[at:]
    return replace(wave, points=pts, updated_at=now_ms())


def remove_last_point(wave: WavePath) -> WavePath:
    if not wave.points:
        return wave
    labels = wave.labels[: len(wave.points) - 1]
    return replace(wave, points=wave.points[:-1], labels=labels, updated_at=now_ms())


def translate_segment(wave: WavePath, index_a: int, index_b: int, dt: float, dp: float) -> WavePath:
    """Shift both endpoints of a segment by (dt, dp)."""
    _check_index(wave, index_a)
    _check_index(wave, index_b)
    pts = list(wave.points)
    for i in {index_a, index_b}:
        pts[i] = Point(t=pts[i].t + dt, p=pts[i].p + dp)
    return replace(wave, points=tuple(pts), updated_at=now_ms())


def duplicate_wave(wave: WavePath, color: str) -> WavePath:
    """Copy under a fresh id, nudged by 2% of the time span and 0.5% of the price span."""
    ts = now_ms()
    if wave.points:
        times = [pt.t for pt in wave.points]
        prices = [pt.p for pt in wave.points]
        dt = (max(times) - min(times)) * 0.02
        dp = (max(prices) - min(prices)) * 0.005
    else:
        dt = dp = 0.0
    pts = tuple(Point(t=pt.t + dt, p=pt.p + dp) for pt in wave.points)
    return replace(wave, id=str(uuid.uuid4()), points=pts, color=color, created_at=ts, updated_at=ts)


def find_wave(waves: Sequence[WavePath], wave_id: Optional[str]) -> Optional[WavePath]:
    for w in waves:
        if w.id == wave_id:
            return w
    return None


def require_wave(waves: Sequence[WavePath], wave_id: str) -> WavePath:
    w = find_wave(waves, wave_id)
    if w is None:
        raise DanglingReferenceError(f"no wave {wave_id}")
    return w


def update_wave(waves: Sequence[WavePath], wave: WavePath) -> Waves:
    """Return the collection with `wave` substituted for the entry sharing its id."""
    require_wave(waves, wave.id)
    return tuple(wave if w.id == wave.id else w for w in waves)


def remove_wave(waves: Sequence[WavePath], wave_id: str) -> Waves:
    return tuple(w for w in waves if w.id != wave_id)
