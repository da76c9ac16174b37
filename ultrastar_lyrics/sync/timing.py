from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable

from ultrastar_lyrics.txt.metadata import SongMetadata
from ultrastar_lyrics.txt.model import Event, NoteEvent

MS_PER_MINUTE = 60_000.0
# UltraStar beats are quarter-beats of the BPM tag
BEATS_PER_QUARTER = 4.0


@dataclass(frozen=True, slots=True)
class UltraStarTiming:
    bpm: float
    gap_ms: int = 0

    def __post_init__(self) -> None:
        if not math.isfinite(self.bpm) or self.bpm <= 0:
            raise ValueError(f"BPM must be a positive finite value, got {self.bpm!r}")

    @classmethod
    def try_create(cls, metadata: SongMetadata) -> "UltraStarTiming | None":
        """
        None when BPM is missing or not positive; a common case, not an error.
        """
        bpm = metadata.bpm
        if bpm is None or bpm <= 0:
            return None
        gap = metadata.gap_ms
        return cls(bpm=bpm, gap_ms=gap if gap is not None else 0)

    @property
    def beat_duration_ms(self) -> float:
        return MS_PER_MINUTE / (self.bpm * BEATS_PER_QUARTER)

    def beats_to_ms(self, beats: int) -> float:
        return beats * self.beat_duration_ms

    def beat_to_ms(self, beat: int) -> float:
        return self.gap_ms + self.beats_to_ms(beat)

    def note_start_ms(self, note: NoteEvent) -> float:
        return self.beat_to_ms(note.start_beat)

    def note_duration_ms(self, note: NoteEvent) -> float:
        return self.beats_to_ms(note.length)

    def first_note_start_ms(self, events: Iterable[Event]) -> float | None:
        beat = first_note_beat(events)
        if beat is None:
            return None
        return self.beat_to_ms(beat)


def first_note_beat(events: Iterable[Event]) -> int | None:
    # min over all notes, not the first one in file order
    beats = [e.start_beat for e in events if isinstance(e, NoteEvent)]
    return min(beats) if beats else None
