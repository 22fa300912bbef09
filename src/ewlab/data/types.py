"""Read-only candle view handed to the engine by the chart collaborator.

The engine only ever reads candles (magnet snapping); it never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Union

import pandas as pd

_COLUMNS = ["t", "o", "h", "l", "c", "v"]


@dataclass(frozen=True)
class Candle:
    t: float  # epoch seconds
    o: float
    h: float
    l: float  # noqa: E741
    c: float
    v: float = 0.0


def _as_candle(obj: Any) -> Candle:
    if isinstance(obj, Candle):
        return obj
    if isinstance(obj, Mapping):
        return Candle(
            t=float(obj["t"]),
            o=float(obj["o"]),
            h=float(obj["h"]),
            l=float(obj["l"]),
            c=float(obj["c"]),
            v=float(obj.get("v", 0.0) or 0.0),
        )
    return Candle(
        t=float(obj.t), o=float(obj.o), h=float(obj.h), l=float(obj.l), c=float(obj.c),
        v=float(getattr(obj, "v", 0.0) or 0.0),
    )


class CandleSeries:
    """A thin wrapper around a pandas DataFrame with columns t,o,h,l,c,v sorted by t."""

    def __init__(self, df: pd.DataFrame):
        missing = {"t", "h", "l", "c"} - set(df.columns)
        if missing:
            raise ValueError(f"CandleSeries missing columns: {sorted(missing)}")
        self._df = df.sort_values("t", kind="stable").reset_index(drop=True)

    @staticmethod
    def from_candles(candles: Iterable[Any]) -> "CandleSeries":
        rows = [_as_candle(c) for c in candles]
        df = pd.DataFrame([[c.t, c.o, c.h, c.l, c.c, c.v] for c in rows], columns=_COLUMNS)
        return CandleSeries(df)

    @property
    def df(self) -> pd.DataFrame:
        return self._df

    def __len__(self) -> int:
        return len(self._df)

    def __iter__(self) -> Iterator[Candle]:
        for row in self._df.itertuples(index=False):
            yield Candle(
                t=float(row.t), o=float(getattr(row, "o", row.c)), h=float(row.h),
                l=float(row.l), c=float(row.c), v=float(getattr(row, "v", 0.0)),
            )

    @property
    def empty(self) -> bool:
        return self._df.empty

    def nearest(self, t: float) -> Optional[Candle]:
        """Candle whose time is closest to t (earliest wins a tie)."""
        if self._df.empty:
            return None
        pos = int((self._df["t"] - t).abs().to_numpy().argmin())
        row = self._df.iloc[pos]
        return Candle(
            t=float(row["t"]), o=float(row.get("o", row["c"])), h=float(row["h"]),
            l=float(row["l"]), c=float(row["c"]), v=float(row.get("v", 0.0)),
        )


CandleInput = Union[CandleSeries, pd.DataFrame, List[Candle], List[Mapping[str, Any]]]


def as_series(candles: Optional[CandleInput]) -> Optional[CandleSeries]:
    if candles is None:
        return None
    if isinstance(candles, CandleSeries):
        return candles
    if isinstance(candles, pd.DataFrame):
        return CandleSeries(candles)
    return CandleSeries.from_candles(candles)
