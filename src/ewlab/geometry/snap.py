"""Grid and magnet snapping for placed/dragged points.

Order: time grid, price grid, then the candle magnet as a post-process
override. The magnet picks its candle from the already time-snapped t, so it
can undo the price-grid snap but never bypass the time grid.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ewlab.data.types import CandleInput, as_series
from ewlab.ew.core.model import Point
from ewlab.geometry.hittest import CoordinateTransform
from ewlab.logging import get_logger

log = get_logger("ewlab.snap")


@dataclass(frozen=True)
class SnapSettings:
    enabled: bool = False
    time_grid_sec: float = 0.0
    price_grid: float = 0.0
    magnet_hl: bool = False
    magnet_px: float = 8.0


def _round_half_up(x: float) -> float:
    return math.floor(x + 0.5)


def snap_to_grid(value: float, step: float) -> float:
    if step <= 0:
        return value
    return _round_half_up(value / step) * step


def snap_point(
    point: Point,
    settings: SnapSettings,
    candles: Optional[CandleInput] = None,
    transform: Optional[CoordinateTransform] = None,
) -> Point:
    if not settings.enabled:
        return point

    t = snap_to_grid(point.t, settings.time_grid_sec)
    p = snap_to_grid(point.p, settings.price_grid)

    series = as_series(candles) if settings.magnet_hl else None
    if series is None or series.empty:
        return Point(t=t, p=p)
    if transform is None:
        log.debug("magnet skipped", extra={"reason": "no transform"})
        return Point(t=t, p=p)

    candle = series.nearest(t)
    y_now = transform.price_to_pixel(p)
    if candle is None or y_now is None:
        return Point(t=t, p=p)

    best_level: Optional[float] = None
    best_d = math.inf
    for level in (candle.h, candle.l, candle.c):
        y = transform.price_to_pixel(level)
        if y is None:
            continue
        d = abs(y - y_now)
        if d < best_d:
            best_d, best_level = d, level

    if best_level is not None and best_d <= settings.magnet_px:
        return Point(t=candle.t, p=best_level)
    return Point(t=t, p=p)
