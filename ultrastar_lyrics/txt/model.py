from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from .metadata import SongMetadata


class NoteKind(Enum):
    NORMAL = ":"
    GOLDEN = "*"
    FREESTYLE = "F"
    RAP = "R"
    RAP_GOLDEN = "G"


@dataclass(frozen=True, slots=True)
class NoteEvent:
    kind: NoteKind
    start_beat: int
    length: int
    pitch: int
    text: str


@dataclass(frozen=True, slots=True)
class PhraseEndEvent:
    start_beat: int


@dataclass(frozen=True, slots=True)
class PlayerMarkerEvent:
    # carried through for duet files, timing ignores it
    label: str


Event = Union[NoteEvent, PhraseEndEvent, PlayerMarkerEvent]


@dataclass(frozen=True, slots=True)
class Song:
    metadata: SongMetadata
    events: tuple[Event, ...]

    @property
    def notes(self) -> tuple[NoteEvent, ...]:
        return tuple(e for e in self.events if isinstance(e, NoteEvent))
