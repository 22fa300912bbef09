"""Typed editor settings built from the layered config dict.

Sections: snap, hit, history, rules, colors, logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from ewlab.ew.core.rules import RuleConfig
from ewlab.geometry.hittest import HitConfig
from ewlab.geometry.snap import SnapSettings

from .loader import load_config

DEFAULTS: Dict[str, Any] = {
    "snap": {
        "enabled": False,
        "time_grid_sec": 0,
        "price_grid": 0.0,
        "magnet_hl": False,
        "magnet_px": 8.0,
    },
    "hit": {
        "handle_radius_px": 6.0,
        "point_tol_px": 4.0,
        "segment_tol_px": 6.0,
    },
    "history": {"max_depth": 100},
    "rules": {"epsilon": 1e-9, "alternation_threshold": 0.10},
    "colors": {
        "impulse": "#22c55e",
        "correction": "#60a5fa",
        "palette": ["#5B8FF9", "#5AD8A6", "#5D7092", "#F6BD16", "#E8684A", "#6DC8EC"],
    },
    "logging": {"level": "info", "json": False},
}


@dataclass(frozen=True)
class ColorConfig:
    impulse: str = "#22c55e"
    correction: str = "#60a5fa"
    palette: Tuple[str, ...] = tuple(DEFAULTS["colors"]["palette"])

    def for_kind(self, kind: str) -> str:
        return self.impulse if str(getattr(kind, "value", kind)) == "impulse" else self.correction


@dataclass(frozen=True)
class EditorConfig:
    snap: SnapSettings = field(default_factory=SnapSettings)
    hit: HitConfig = field(default_factory=HitConfig)
    rules: RuleConfig = field(default_factory=RuleConfig)
    colors: ColorConfig = field(default_factory=ColorConfig)
    history_depth: int = 100

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> "EditorConfig":
        snap = {**DEFAULTS["snap"], **(cfg.get("snap") or {})}
        hit = {**DEFAULTS["hit"], **(cfg.get("hit") or {})}
        rules = {**DEFAULTS["rules"], **(cfg.get("rules") or {})}
        colors = {**DEFAULTS["colors"], **(cfg.get("colors") or {})}
        history = {**DEFAULTS["history"], **(cfg.get("history") or {})}
        return EditorConfig(
            snap=SnapSettings(
                enabled=bool(snap["enabled"]),
                time_grid_sec=float(snap["time_grid_sec"]),
                price_grid=float(snap["price_grid"]),
                magnet_hl=bool(snap["magnet_hl"]),
                magnet_px=float(snap["magnet_px"]),
            ),
            hit=HitConfig(
                handle_radius_px=float(hit["handle_radius_px"]),
                point_tol_px=float(hit["point_tol_px"]),
                segment_tol_px=float(hit["segment_tol_px"]),
            ),
            rules=RuleConfig(
                epsilon=float(rules["epsilon"]),
                alternation_threshold=float(rules["alternation_threshold"]),
            ),
            colors=ColorConfig(
                impulse=str(colors["impulse"]),
                correction=str(colors["correction"]),
                palette=tuple(str(c) for c in colors["palette"]),
            ),
            history_depth=int(history["max_depth"]),
        )


def load_editor_config(file_path: Optional[str] = None, *, use_env: bool = True) -> EditorConfig:
    return EditorConfig.from_dict(load_config(DEFAULTS, file_path, use_env=use_env))
