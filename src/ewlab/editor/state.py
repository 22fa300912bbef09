"""Editor modes as tagged states.

Only Drawing carries a partial wave, so "is there an active wave" is a
question about the state's type, not a nullable field.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ewlab.ew.core.model import DragHandle, Selection, WaveKind, WavePath, Waves, NO_SELECTION


class Mode(str, Enum):
    select = "select"
    draw_impulse = "draw-impulse"
    draw_correction = "draw-correction"
    delete = "delete"

    @property
    def wave_kind(self) -> Optional[WaveKind]:
        if self is Mode.draw_impulse:
            return WaveKind.impulse
        if self is Mode.draw_correction:
            return WaveKind.correction
        return None

    @staticmethod
    def for_kind(kind: WaveKind) -> "Mode":
        return Mode.draw_impulse if WaveKind(kind) is WaveKind.impulse else Mode.draw_correction


@dataclass(frozen=True)
class Selecting:
    mode = Mode.select


@dataclass(frozen=True)
class Drawing:
    kind: WaveKind
    partial: WavePath

    @property
    def mode(self) -> Mode:
        return Mode.for_kind(self.kind)


@dataclass(frozen=True)
class Deleting:
    mode = Mode.delete


EditorState = Union[Selecting, Drawing, Deleting]


@dataclass(frozen=True)
class SegmentDrag:
    """Segment being translated; (t, p) is the data-space cursor of the last move."""
    wave_id: str
    a_index: int
    b_index: int
    t: float
    p: float


Drag = Union[DragHandle, SegmentDrag]


@dataclass(frozen=True)
class Document:
    """The single-writer document: committed waves plus selection."""
    waves: Waves = ()
    selection: Selection = NO_SELECTION

    @property
    def selected_wave_id(self) -> Optional[str]:
        return self.selection.wave_id
