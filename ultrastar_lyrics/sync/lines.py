from __future__ import annotations

from dataclasses import dataclass

from ultrastar_lyrics.txt.model import NoteEvent, PhraseEndEvent, PlayerMarkerEvent, Song

from .timing import UltraStarTiming

SUSTAIN_MARKER = "~"


@dataclass(frozen=True, slots=True)
class LyricToken:
    text: str
    start_ms: float
    end_ms: float

    def __post_init__(self) -> None:
        if self.end_ms < self.start_ms:
            raise ValueError(f"Token ends before it starts: {self.start_ms} > {self.end_ms}")


@dataclass(frozen=True, slots=True)
class LyricLine:
    start_ms: float
    end_ms: float
    text: str
    tokens: tuple[LyricToken, ...] = ()

    def __post_init__(self) -> None:
        if self.end_ms < self.start_ms:
            raise ValueError(f"Line ends before it starts: {self.start_ms} > {self.end_ms}")


def normalize_token_text(text: str) -> str:
    if not text or text == SUSTAIN_MARKER:
        return ""
    return text.replace("’", "'").replace("‘", "'")


def _tokens(notes: list[NoteEvent], timing: UltraStarTiming) -> tuple[LyricToken, ...]:
    out: list[LyricToken] = []
    for note in notes:
        text = normalize_token_text(note.text)
        if not text.strip():
            continue
        start = timing.note_start_ms(note)
        # negative note lengths would break the token invariant
        end = start + max(timing.note_duration_ms(note), 0.0)
        out.append(LyricToken(text=text.strip(), start_ms=start, end_ms=end))
    return tuple(out)


def _flush(notes: list[NoteEvent], timing: UltraStarTiming, end_beat: int, out: list[LyricLine]) -> None:
    if not notes:
        return
    start_ms = timing.beat_to_ms(min(n.start_beat for n in notes))
    end_ms = max(timing.beat_to_ms(end_beat), start_ms)
    tokens = _tokens(notes, timing)
    text = " ".join(t.text for t in tokens).strip()
    out.append(LyricLine(start_ms=start_ms, end_ms=end_ms, text=text, tokens=tokens))


def build_lines(song: Song, timing: UltraStarTiming | None = None) -> list[LyricLine]:
    """
    Group notes into display lines; each phrase-end closes a line.
    Returns [] when the song has no usable BPM.
    """
    if timing is None:
        timing = UltraStarTiming.try_create(song.metadata)
        if timing is None:
            return []

    lines: list[LyricLine] = []
    pending: list[NoteEvent] = []

    for evt in song.events:
        match evt:
            case NoteEvent():
                pending.append(evt)
            case PhraseEndEvent(start_beat=beat):
                _flush(pending, timing, beat, lines)
                pending.clear()
            case PlayerMarkerEvent():
                pass

    if pending:
        last = pending[-1]
        _flush(pending, timing, last.start_beat + last.length, lines)

    return lines
