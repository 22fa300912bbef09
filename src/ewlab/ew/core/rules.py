"""Structural rule checks for annotated waves.

Prices are read by point index: p0 is the origin of wave 1, p1 its end,
p2 the end of wave 2 and so on. A freshly drawn impulse therefore covers
p0..p4; the wave-5 terminal p5 only exists once a point has been inserted.

Rules (fixed output order):
- R1  wave 2 does not retrace beyond the origin of wave 1      (error)
- R2  wave 3 is not the shortest of the impulsive legs 1,3,5    (error)
- R3  wave 4 does not enter wave 1 territory (touching = warn)  (error/warn)
- R4  labels are a prefix of 1-5                                 (warn)
- ALT waves 2 and 4 differ in amplitude (guideline)             (info)
- R5  A-B-C: C moves against B                                   (warn)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from ewlab.ew.core.model import IMPULSE_LABELS, WaveKind, WavePath

RULE_ORDER = ("R1", "R2", "R3", "R4", "ALT", "R5")

INFO = "info"
WARN = "warn"
ERROR = "error"


@dataclass(frozen=True)
class RuleConfig:
    epsilon: float = 1e-9
    alternation_threshold: float = 0.10


@dataclass(frozen=True)
class RuleResult:
    id: str
    ok: bool
    severity: str
    message: str

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "ok": self.ok, "severity": self.severity, "message": self.message}


def _sign(x: float, eps: float) -> int:
    if x > eps:
        return 1
    if x < -eps:
        return -1
    return 0


def _r1(p: Sequence[float], eps: float) -> RuleResult:
    p0, p1, p2 = p[0], p[1], p[2]
    d = _sign(p1 - p0, eps)
    if d == 0:
        invalid = True
    elif d > 0:
        invalid = p2 <= p0 + eps
    else:
        invalid = p2 >= p0 - eps
    return RuleResult(
        id="R1",
        ok=not invalid,
        severity=ERROR if invalid else INFO,
        message="wave 2 does not retrace beyond the origin of wave 1",
    )


def _r2(p: Sequence[float], eps: float) -> RuleResult:
    w1 = abs(p[1] - p[0])
    w3 = abs(p[3] - p[2])
    w5 = abs(p[5] - p[4])
    ok = not (w3 < min(w1, w5) - eps)
    return RuleResult(
        id="R2",
        ok=ok,
        severity=INFO if ok else ERROR,
        message="wave 3 is not the shortest impulsive wave (1, 3, 5)",
    )


def _r3(p: Sequence[float], eps: float) -> RuleResult:
    p0, p1, p4 = p[0], p[1], p[4]
    d = _sign(p1 - p0, eps)
    if d >= 0:
        # bullish (or flat): wave-4 floor must stay above wave-1 ceiling
        gap = p4 - max(p0, p1)
    else:
        gap = min(p0, p1) - p4
    if gap < -eps:
        ok, severity = False, ERROR
    elif gap <= eps:
        ok, severity = False, WARN
    else:
        ok, severity = True, INFO
    return RuleResult(id="R3", ok=ok, severity=severity, message="wave 4 does not enter wave 1 territory")


def _r4(labels: Sequence[str]) -> RuleResult:
    ok = tuple(labels) == IMPULSE_LABELS[: len(labels)]
    return RuleResult(
        id="R4",
        ok=ok,
        severity=INFO if ok else WARN,
        message="label sequence is coherent (1-5)",
    )


def _alternation(p: Sequence[float], cfg: RuleConfig) -> RuleResult:
    w2 = abs(p[2] - p[1])
    w4 = abs(p[4] - p[3])
    top = max(w2, w4)
    ok = top > cfg.epsilon and abs(w2 - w4) / top > cfg.alternation_threshold
    return RuleResult(
        id="ALT",
        ok=ok,
        severity=INFO,
        message=f"waves 2 and 4 alternate (amplitudes differ by more than {cfg.alternation_threshold:.0%})",
    )


def _r5(p: Sequence[float], eps: float) -> RuleResult:
    d_ab = _sign(p[1] - p[0], eps)
    d_bc = _sign(p[2] - p[1], eps)
    ok = d_ab != 0 and d_bc != 0 and d_bc == -d_ab
    return RuleResult(
        id="R5",
        ok=ok,
        severity=INFO if ok else WARN,
        message="A-B-C: C resumes against B's contra-move",
    )


def validate_impulse(wave: WavePath, cfg: RuleConfig = RuleConfig()) -> List[RuleResult]:
    if WaveKind(wave.kind) is not WaveKind.impulse:
        return []
    p = wave.prices
    eps = cfg.epsilon
    res: List[RuleResult] = []
    if len(p) >= 3:
        res.append(_r1(p, eps))
    if len(p) >= 6:
        res.append(_r2(p, eps))
    if len(p) >= 5:
        res.append(_r3(p, eps))
    if wave.labels:
        res.append(_r4(wave.labels))
    if len(p) >= 5:
        res.append(_alternation(p, cfg))
    return res


def validate_correction(wave: WavePath, cfg: RuleConfig = RuleConfig()) -> List[RuleResult]:
    if WaveKind(wave.kind) is not WaveKind.correction or len(wave.points) < 3:
        return []
    return [_r5(wave.prices, cfg.epsilon)]


def _ordered(results: Iterable[RuleResult]) -> List[RuleResult]:
    return sorted(results, key=lambda r: RULE_ORDER.index(r.id))


def validate(wave: WavePath, cfg: RuleConfig = RuleConfig()) -> List[RuleResult]:
    """Run every applicable rule; results come back in RULE_ORDER."""
    return _ordered(validate_impulse(wave, cfg) + validate_correction(wave, cfg))


def summarize(results: Sequence[RuleResult]) -> Dict[str, int]:
    out = {"checked": len(results), "failed": 0, ERROR: 0, WARN: 0, INFO: 0}
    for r in results:
        if not r.ok:
            out["failed"] += 1
            out[r.severity] += 1
    return out


def blocking(results: Sequence[RuleResult]) -> bool:
    return any(not r.ok and r.severity == ERROR for r in results)
