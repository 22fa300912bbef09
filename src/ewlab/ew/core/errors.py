"""Engine error taxonomy.

None of these are fatal: every failure degrades to "mutation skipped,
prior state intact". SchemaError and EmptyHistoryError reach the caller;
the other two are recovered inside the editor session.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine errors."""


class SchemaError(EngineError, ValueError):
    """Import payload failed structural validation."""


class EmptyHistoryError(EngineError):
    """Undo/redo requested with nothing on the stack."""

    def __init__(self, direction: str):
        super().__init__(f"nothing to {direction}")
        self.direction = direction


class DanglingReferenceError(EngineError, LookupError):
    """A wave id or point index no longer exists."""


class OutOfRangeError(EngineError):
    """The coordinate transform could not map a value (returned None)."""
