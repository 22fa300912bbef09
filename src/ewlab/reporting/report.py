from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from ewlab.ew.core.model import WavePath
from ewlab.ew.core.rules import RuleConfig, RuleResult, summarize, validate


@dataclass
class WaveReport:
    wave_id: str
    kind: str
    points: int
    labels: str
    results: List[RuleResult]

    @property
    def summary(self) -> Dict[str, int]:
        return summarize(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wave_id": self.wave_id,
            "kind": self.kind,
            "points": self.points,
            "labels": self.labels,
            **self.summary,
            "results": [r.to_dict() for r in self.results],
        }


def build_reports(
    waves: Sequence[WavePath],
    cfg: RuleConfig = RuleConfig(),
    wave_id: Optional[str] = None,
) -> List[WaveReport]:
    out: List[WaveReport] = []
    for w in waves:
        if wave_id is not None and w.id != wave_id:
            continue
        out.append(
            WaveReport(
                wave_id=w.id,
                kind=w.kind.value,
                points=len(w.points),
                labels="".join(w.labels),
                results=validate(w, cfg),
            )
        )
    return out


def report_frame(reports: Sequence[WaveReport]) -> pd.DataFrame:
    """One row per (wave, rule)."""
    rows = [
        {"wave_id": r.wave_id, "kind": r.kind, "points": r.points, **res.to_dict()}
        for r in reports
        for res in r.results
    ]
    return pd.DataFrame(rows, columns=["wave_id", "kind", "points", "id", "ok", "severity", "message"])


def format_compact(reports: Sequence[WaveReport], failures_only: bool = True) -> str:
    lines: List[str] = []
    for r in reports:
        s = r.summary
        lines.append(
            f"wave={r.wave_id} kind={r.kind} points={r.points} labels={r.labels or '-'} "
            f"checked={s['checked']} errors={s['error']} warns={s['warn']} infos={s['info']}"
        )
        for res in r.results:
            if failures_only and res.ok:
                continue
            flag = "ok" if res.ok else "FAIL"
            lines.append(f"  {res.id:<3} {flag:<4} {res.severity:<5} {res.message}")
    return "\n".join(lines)
