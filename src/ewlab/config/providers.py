"""Config providers for the editor.

Each provider yields a plain nested dict; ConfigManager folds them in
precedence order (defaults < file < env), later layers winning key by key.
Values from the environment arrive as strings and are coerced here so the
typed settings layer only has to cast.
"""

from __future__ import annotations

import json
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Mapping, Protocol, runtime_checkable

from ewlab.logging import get_logger

log = get_logger("ewlab.config")

_TRUE = frozenset({"true", "yes", "on"})
_FALSE = frozenset({"false", "no", "off"})


@runtime_checkable
class ConfigProvider(Protocol):
    name: str

    def load(self) -> Dict[str, Any]:
        """Return this layer as a nested dict (empty when it has nothing to say)."""
        ...


def _deep_merge(into: Dict[str, Any], layer: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in layer.items():
        current = into.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            into[key] = _deep_merge(dict(current), value)
        else:
            into[key] = value
    return into


def _coerce_value(raw: str) -> Any:
    """Best-effort typing of an env string: bool, int, float, JSON list/object."""
    s = raw.strip()
    low = s.lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    for cast in (int, float):
        try:
            return cast(s)
        except ValueError:
            continue
    if s and s[0] in "[{" and s[-1] in "]}":
        try:
            return json.loads(s)
        except json.JSONDecodeError:
            pass
    return raw


@dataclass
class DictProvider:
    name: str = "defaults"
    data: Dict[str, Any] = field(default_factory=dict)

    def load(self) -> Dict[str, Any]:
        return _deep_merge({}, self.data)


@dataclass
class EnvProvider:
    """Maps EWLAB_<SECTION>__<KEY>=value onto {"section": {"key": value}}.

    Variables the CLI reads directly (EWLAB_CONFIG, EWLAB_LOG_LEVEL) are not
    config keys and are skipped.
    """

    name: str = "env"
    prefix: str = "EWLAB_"
    sep: str = "__"
    skip: FrozenSet[str] = frozenset({"CONFIG", "LOG_LEVEL"})

    def load(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for var, raw in os.environ.items():
            if not var.startswith(self.prefix):
                continue
            key = var[len(self.prefix):]
            if key in self.skip:
                continue
            path = [part.lower() for part in key.split(self.sep) if part]
            if not path:
                continue
            node = out
            for part in path[:-1]:
                child = node.get(part)
                if not isinstance(child, dict):
                    child = node[part] = {}
                node = child
            node[path[-1]] = _coerce_value(raw)
        return out


@dataclass
class FileProvider:
    """JSON (`.json` or no suffix) or TOML (`.toml`) settings file."""

    name: str = "file"
    path: str = ""
    optional: bool = True

    def load(self) -> Dict[str, Any]:
        if not self.path:
            return {}
        p = Path(self.path)
        if not p.exists():
            if self.optional:
                return {}
            raise FileNotFoundError(self.path)

        text = p.read_text(encoding="utf-8")
        if p.suffix.lower() == ".toml":
            data: Any = tomllib.loads(text)
        else:
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise ValueError(f"{self.path}: invalid JSON config ({e.msg})") from e
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: config root must be a table/object")
        return data


@dataclass
class ConfigManager:
    """Fold providers in order; later providers override earlier ones."""

    providers: List[ConfigProvider]

    def load(self) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for provider in self.providers:
            layer = provider.load()
            if not layer:
                continue
            log.debug("config layer", extra={"provider": provider.name, "sections": sorted(layer)})
            _deep_merge(merged, layer)
        return merged
