"""JSON codec for wave documents.

Two accepted forms:
  collection: [{id, kind, points: [{t, p}], labels, color, createdAt, updatedAt}, ...]
  snapshot:   {ts, waves: [...], selectedWaveId}

Decoding is strict: anything that is not one of those shapes raises
SchemaError. The only leniency is for legacy documents without
createdAt/updatedAt, which get the current time.
"""

from __future__ import annotations

import json
import math
from typing import Any, Dict, List, Optional, Sequence

from ewlab.ew.core.errors import SchemaError
from ewlab.ew.core.model import Point, Snapshot, WaveKind, WavePath, canonical_labels, now_ms


def wave_to_dict(w: WavePath) -> Dict[str, Any]:
    return {
        "id": w.id,
        "kind": WaveKind(w.kind).value,
        "points": [{"t": pt.t, "p": pt.p} for pt in w.points],
        "labels": list(w.labels),
        "color": w.color,
        "createdAt": w.created_at,
        "updatedAt": w.updated_at,
    }


def snapshot_to_dict(s: Snapshot) -> Dict[str, Any]:
    return {
        "ts": s.ts,
        "waves": [wave_to_dict(w) for w in s.waves],
        "selectedWaveId": s.selected_wave_id,
    }


def dumps_waves(waves: Sequence[WavePath]) -> str:
    return json.dumps([wave_to_dict(w) for w in waves], ensure_ascii=False)


def dumps_snapshot(s: Snapshot) -> str:
    return json.dumps(snapshot_to_dict(s), ensure_ascii=False)


def _number(v: Any, what: str) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
        raise SchemaError(f"{what} must be a finite number, got {v!r}")
    return float(v)


def _point_from(obj: Any, where: str) -> Point:
    if not isinstance(obj, dict):
        raise SchemaError(f"{where}: point must be an object")
    if "t" not in obj or "p" not in obj:
        raise SchemaError(f"{where}: point needs 't' and 'p'")
    return Point(t=_number(obj["t"], f"{where}.t"), p=_number(obj["p"], f"{where}.p"))


def wave_from_dict(obj: Any, where: str = "wave") -> WavePath:
    if not isinstance(obj, dict):
        raise SchemaError(f"{where}: must be an object")
    wid = obj.get("id")
    if not isinstance(wid, str) or not wid:
        raise SchemaError(f"{where}: 'id' must be a non-empty string")
    try:
        kind = WaveKind(obj.get("kind"))
    except ValueError as e:
        raise SchemaError(f"{where}: unknown kind {obj.get('kind')!r}") from e

    raw_points = obj.get("points")
    if not isinstance(raw_points, list):
        raise SchemaError(f"{where}: 'points' must be an array")
    points = tuple(_point_from(p, f"{where}.points[{i}]") for i, p in enumerate(raw_points))

    labels = obj.get("labels")
    if not isinstance(labels, list) or not all(isinstance(x, str) for x in labels):
        raise SchemaError(f"{where}: 'labels' must be an array of strings")
    if len(labels) > len(points) or tuple(labels) != canonical_labels(kind)[: len(labels)]:
        raise SchemaError(f"{where}: labels {labels} are not a canonical prefix for {kind.value}")

    color = obj.get("color")
    if not isinstance(color, str):
        raise SchemaError(f"{where}: 'color' must be a string")

    ts = now_ms()
    created = obj.get("createdAt")
    updated = obj.get("updatedAt")
    return WavePath(
        id=wid,
        kind=kind,
        points=points,
        labels=tuple(labels),
        color=color,
        created_at=int(_number(created, f"{where}.createdAt")) if created is not None else ts,
        updated_at=int(_number(updated, f"{where}.updatedAt")) if updated is not None else ts,
    )


def _waves_from_list(items: List[Any]) -> tuple:
    waves = tuple(wave_from_dict(o, f"waves[{i}]") for i, o in enumerate(items))
    seen = set()
    for w in waves:
        if w.id in seen:
            raise SchemaError(f"duplicate wave id {w.id!r}")
        seen.add(w.id)
    return waves


def _parse(text: str) -> Any:
    if not isinstance(text, str):
        raise SchemaError("document must be text")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise SchemaError(f"invalid JSON: {e.msg}") from e
    except RecursionError as e:
        raise SchemaError("document nests too deeply") from e


def snapshot_from_obj(raw: Any) -> Snapshot:
    if isinstance(raw, list):
        return Snapshot(ts=now_ms(), waves=_waves_from_list(raw), selected_wave_id=None)
    if not isinstance(raw, dict) or not isinstance(raw.get("waves"), list):
        raise SchemaError("expected a wave array or an object with a 'waves' array")
    waves = _waves_from_list(raw["waves"])
    sel: Optional[str] = raw.get("selectedWaveId")
    if sel is not None and (not isinstance(sel, str) or sel not in {w.id for w in waves}):
        raise SchemaError(f"selectedWaveId {sel!r} does not name a wave in the document")
    ts = raw.get("ts")
    return Snapshot(
        ts=int(_number(ts, "ts")) if ts is not None else now_ms(),
        waves=waves,
        selected_wave_id=sel,
    )


def loads_snapshot(text: str) -> Snapshot:
    """Decode either document form into a Snapshot; raise SchemaError otherwise."""
    return snapshot_from_obj(_parse(text))


def loads_waves(text: str) -> tuple:
    """Decode the collection form only."""
    raw = _parse(text)
    if not isinstance(raw, list):
        raise SchemaError("expected a wave array")
    return _waves_from_list(raw)
