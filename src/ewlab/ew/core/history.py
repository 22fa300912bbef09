"""Snapshot-based undo/redo.

Entries are recorded immediately before a committing action, never per
drag frame. Snapshots hold immutable wave tuples, so pushing one is a
reference copy rather than a serialization round-trip.
"""

from __future__ import annotations

from typing import List

from ewlab.ew.core.errors import EmptyHistoryError
from ewlab.ew.core.model import Snapshot
from ewlab.logging import get_logger

log = get_logger("ewlab.history")


class History:
    def __init__(self, max_depth: int = 100):
        self.max_depth = int(max_depth)
        self._undo: List[Snapshot] = []
        self._redo: List[Snapshot] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def __len__(self) -> int:
        return len(self._undo)

    def _trim(self, stack: List[Snapshot]) -> None:
        if self.max_depth > 0 and len(stack) > self.max_depth:
            del stack[: len(stack) - self.max_depth]

    def record(self, before: Snapshot) -> None:
        """Push the pre-mutation state; any redo branch is dropped."""
        self._undo.append(before)
        self._trim(self._undo)
        self._redo.clear()
        log.debug("history record", extra={"undo_depth": len(self._undo)})

    def undo(self, current: Snapshot) -> Snapshot:
        if not self._undo:
            raise EmptyHistoryError("undo")
        prev = self._undo.pop()
        self._redo.append(current)
        self._trim(self._redo)
        return prev

    def redo(self, current: Snapshot) -> Snapshot:
        if not self._redo:
            raise EmptyHistoryError("redo")
        nxt = self._redo.pop()
        self._undo.append(current)
        self._trim(self._undo)
        return nxt

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
