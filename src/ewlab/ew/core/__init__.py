"""Wave model, rules, history and codec."""

from ewlab.ew.core.errors import (  # noqa: F401
    DanglingReferenceError,
    EmptyHistoryError,
    EngineError,
    OutOfRangeError,
    SchemaError,
)
from ewlab.ew.core.model import Point, Snapshot, WaveKind, WavePath  # noqa: F401
from ewlab.ew.core.rules import RuleConfig, RuleResult, validate  # noqa: F401
