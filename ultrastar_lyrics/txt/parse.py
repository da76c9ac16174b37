from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .decode import decode_lines, read_lines
from .metadata import SongMetadata, try_parse_int
from .model import Event, NoteEvent, NoteKind, PhraseEndEvent, PlayerMarkerEvent, Song

_NOTE_KINDS = {k.value: k for k in NoteKind}

# marker, start beat, length, pitch, lyric text
_NOTE_MAX_SPLITS = 4
_NOTE_MIN_PARTS = 4


@dataclass(frozen=True, slots=True)
class ParseStats:
    lines_total: int
    lines_blank: int
    lines_ignored: int
    tags_total: int
    notes_total: int
    phrase_ends_total: int
    player_markers_total: int
    end_marker_seen: bool


def split_note_line(line: str) -> list[str]:
    """
    Split on single spaces, at most 4 times. Runs of spaces before the cap
    collapse; after it, spaces belong to the lyric text:

        ": 4 4 0  llo" -> [":", "4", "4", "0", " llo"]
    """
    parts: list[str] = []
    current: list[str] = []
    splits = 0
    for ch in line:
        if ch == " " and splits < _NOTE_MAX_SPLITS:
            if current:
                parts.append("".join(current))
                current.clear()
                splits += 1
            continue
        current.append(ch)
    if current:
        parts.append("".join(current))
    return parts


def _int_or_zero(value: str) -> int:
    n = try_parse_int(value)
    return 0 if n is None else n


def _parse_tag(line: str) -> tuple[str, str] | None:
    colon = line.find(":")
    if colon <= 1:
        return None
    key = line[1:colon].strip()
    if not key:
        return None
    return key.upper(), line[colon + 1 :].strip()


def _parse_note(line: str) -> NoteEvent:
    kind = _NOTE_KINDS[line[0]]
    parts = split_note_line(line)
    if len(parts) < _NOTE_MIN_PARTS:
        return NoteEvent(kind, 0, 0, 0, "")
    text = parts[4] if len(parts) > _NOTE_MIN_PARTS else ""
    return NoteEvent(
        kind=kind,
        start_beat=_int_or_zero(parts[1]),
        length=_int_or_zero(parts[2]),
        pitch=_int_or_zero(parts[3]),
        text=text,
    )


def _parse_phrase_end(line: str) -> PhraseEndEvent | None:
    parts = line.split()
    if len(parts) < 2:
        return None
    return PhraseEndEvent(_int_or_zero(parts[1]))


def parse_with_stats(lines: Iterable[str]) -> tuple[Song, ParseStats]:
    """
    Single forward pass over decoded lines.

    Malformed content never raises: numeric fields default to 0 one by one,
    unusable tag / phrase / player lines are dropped, unknown lines ignored.
    Parsing stops at the first `E` line.
    """
    tags: dict[str, str] = {}
    events: list[Event] = []

    total = 0
    blank = 0
    ignored = 0
    ended = False

    for raw in lines:
        total += 1
        line = raw.strip()
        if not line:
            blank += 1
            continue

        lead = line[0]
        if lead == "#":
            tag = _parse_tag(line)
            if tag is None:
                ignored += 1
                continue
            key, value = tag
            tags[key] = value
        elif lead in _NOTE_KINDS:
            events.append(_parse_note(line))
        elif lead == "-":
            phrase = _parse_phrase_end(line)
            if phrase is None:
                ignored += 1
                continue
            events.append(phrase)
        elif lead == "P":
            if len(line) < 2:
                ignored += 1
                continue
            events.append(PlayerMarkerEvent(line))
        elif lead == "E":
            ended = True
            break
        else:
            ignored += 1

    song = Song(metadata=SongMetadata(tags), events=tuple(events))
    stats = ParseStats(
        lines_total=total,
        lines_blank=blank,
        lines_ignored=ignored,
        tags_total=len(tags),
        notes_total=len(song.notes),
        phrase_ends_total=sum(1 for e in events if isinstance(e, PhraseEndEvent)),
        player_markers_total=sum(1 for e in events if isinstance(e, PlayerMarkerEvent)),
        end_marker_seen=ended,
    )
    return song, stats


def parse(lines: Iterable[str]) -> Song:
    song, _stats = parse_with_stats(lines)
    return song


def parse_from_bytes(data: bytes) -> Song:
    return parse(decode_lines(data))


def parse_file(path: Path) -> Song:
    return parse(read_lines(path))
