from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

# attributes every LogRecord carries; anything else came in through `extra=`
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class LogConfig:
    level: str = "info"
    json: bool = False
    to_file: Optional[str] = None
    utc: bool = True

    @property
    def levelno(self) -> int:
        lvl = self.level.strip().upper()
        if lvl == "WARN":
            lvl = "WARNING"
        value = logging.getLevelName(lvl)
        return value if isinstance(value, int) else logging.INFO

    @staticmethod
    def from_dict(cfg: Mapping[str, Any]) -> "LogConfig":
        """Build from the `logging` section of a loaded config dict."""
        sec = cfg.get("logging") or {}
        return LogConfig(
            level=str(sec.get("level", "info")),
            json=bool(sec.get("json", False)),
            to_file=sec.get("to_file") or None,
            utc=bool(sec.get("utc", True)),
        )


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS and not k.startswith("_")}


class _JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, name, msg, then any extra fields."""

    def __init__(self, utc: bool = True):
        super().__init__()
        self.tz = timezone.utc if utc else None

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=self.tz).isoformat(),
            "level": record.levelname.lower(),
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        return json.dumps(payload, ensure_ascii=False, default=str)


class _TextFormatter(logging.Formatter):
    """Classic line format with `extra=` fields appended as key=value."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        ex = _extras(record)
        if not ex:
            return line
        return line + " " + " ".join(f"{k}={v}" for k, v in ex.items())


def _handlers(cfg: LogConfig) -> List[logging.Handler]:
    out: List[logging.Handler] = [logging.StreamHandler()]
    if cfg.to_file:
        path = Path(cfg.to_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        out.append(logging.FileHandler(path, encoding="utf-8"))
    return out


def setup_logging(cfg: LogConfig) -> None:
    """Replace the root handlers with a stream (and optional file) handler."""
    lvl = cfg.levelno
    fmt: logging.Formatter
    if cfg.json:
        fmt = _JsonFormatter(utc=cfg.utc)
    else:
        fmt = _TextFormatter(fmt=_TEXT_FORMAT, datefmt=_TEXT_DATEFMT)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.setLevel(lvl)
    for h in _handlers(cfg):
        h.setLevel(lvl)
        h.setFormatter(fmt)
        root.addHandler(h)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
