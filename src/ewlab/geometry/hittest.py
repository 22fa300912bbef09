"""Screen-space hit-testing of wave handles and segments.

The chart collaborator owns the axes; we only see four nullable conversion
functions. A None from any of them means the value is outside the drawable
range and the affected point is skipped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

from ewlab.ew.core.model import WavePath


@runtime_checkable
class CoordinateTransform(Protocol):
    def time_to_pixel(self, t: float) -> Optional[float]: ...

    def price_to_pixel(self, p: float) -> Optional[float]: ...

    def pixel_to_time(self, x: float) -> Optional[float]: ...

    def pixel_to_price(self, y: float) -> Optional[float]: ...


@dataclass(frozen=True)
class LinearTransform:
    """Affine transform over a visible window; returns None outside it.

    Pixel y grows downward, so higher prices map to smaller y.
    """

    t0: float
    t1: float
    p_lo: float
    p_hi: float
    width: float
    height: float

    def time_to_pixel(self, t: float) -> Optional[float]:
        if not self.t0 <= t <= self.t1 or self.t1 == self.t0:
            return None
        return (t - self.t0) / (self.t1 - self.t0) * self.width

    def price_to_pixel(self, p: float) -> Optional[float]:
        if not self.p_lo <= p <= self.p_hi or self.p_hi == self.p_lo:
            return None
        return (self.p_hi - p) / (self.p_hi - self.p_lo) * self.height

    def pixel_to_time(self, x: float) -> Optional[float]:
        if not 0 <= x <= self.width or self.width == 0:
            return None
        return self.t0 + x / self.width * (self.t1 - self.t0)

    def pixel_to_price(self, y: float) -> Optional[float]:
        if not 0 <= y <= self.height or self.height == 0:
            return None
        return self.p_hi - y / self.height * (self.p_hi - self.p_lo)


@dataclass(frozen=True)
class HitConfig:
    handle_radius_px: float = 6.0
    point_tol_px: float = 4.0
    segment_tol_px: float = 6.0

    @property
    def point_threshold(self) -> float:
        return self.handle_radius_px + self.point_tol_px


@dataclass(frozen=True)
class PointHit:
    wave_id: str
    index: int
    distance: float


@dataclass(frozen=True)
class SegmentHit:
    wave_id: str
    a_index: int
    b_index: int
    distance: float
    # projection of the cursor onto the segment, in pixels
    x: float
    y: float


Hit = Union[PointHit, SegmentHit]


def project(transform: CoordinateTransform, t: float, p: float) -> Optional[Tuple[float, float]]:
    x = transform.time_to_pixel(t)
    y = transform.price_to_pixel(p)
    if x is None or y is None:
        return None
    return float(x), float(y)


def hit_test_point(
    x: float,
    y: float,
    waves: Sequence[WavePath],
    transform: CoordinateTransform,
    cfg: HitConfig = HitConfig(),
) -> Optional[PointHit]:
    """Closest handle within the threshold; the later-drawn wave keeps exact ties."""
    threshold = cfg.point_threshold
    best: Optional[PointHit] = None
    for w in reversed(waves):
        for i, pt in enumerate(w.points):
            xy = project(transform, pt.t, pt.p)
            if xy is None:
                continue
            d = math.hypot(x - xy[0], y - xy[1])
            if d <= threshold and (best is None or d < best.distance):
                best = PointHit(wave_id=w.id, index=i, distance=d)
    return best


def _distance_to_segment(
    x: float, y: float, a: Tuple[float, float], b: Tuple[float, float]
) -> Tuple[float, float, float]:
    ax, ay = a
    dx, dy = b[0] - ax, b[1] - ay
    len2 = dx * dx + dy * dy
    u = 0.0 if len2 == 0 else max(0.0, min(1.0, ((x - ax) * dx + (y - ay) * dy) / len2))
    px, py = ax + u * dx, ay + u * dy
    return math.hypot(x - px, y - py), px, py


def hit_test_segment(
    x: float,
    y: float,
    waves: Sequence[WavePath],
    transform: CoordinateTransform,
    cfg: HitConfig = HitConfig(),
) -> Optional[SegmentHit]:
    """Closest segment within tolerance across all waves; first found wins ties."""
    best: Optional[SegmentHit] = None
    for w in reversed(waves):
        pix = [project(transform, pt.t, pt.p) for pt in w.points]
        for i in range(len(pix) - 1):
            a, b = pix[i], pix[i + 1]
            if a is None or b is None:
                continue
            d, px, py = _distance_to_segment(x, y, a, b)
            if d > cfg.segment_tol_px:
                continue
            if best is None or d < best.distance:
                best = SegmentHit(wave_id=w.id, a_index=i, b_index=i + 1, distance=d, x=px, y=py)
    return best


def hit_test(
    x: float,
    y: float,
    waves: Sequence[WavePath],
    transform: CoordinateTransform,
    cfg: HitConfig = HitConfig(),
) -> Optional[Hit]:
    """Points take priority over segments; None means empty space."""
    return hit_test_point(x, y, waves, transform, cfg) or hit_test_segment(x, y, waves, transform, cfg)
