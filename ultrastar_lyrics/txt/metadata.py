from __future__ import annotations

import math
import re
from types import MappingProxyType
from typing import Mapping

_INT_RE = re.compile(r"^\s*[+-]?[0-9]+\s*$")
_FLOAT_RE = re.compile(r"^\s*[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?\s*$")

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


def try_parse_int(value: str) -> int | None:
    """
    Invariant integer parse: optional sign, ASCII digits, 32-bit range.
    """
    if not _INT_RE.match(value):
        return None
    n = int(value)
    if not (_INT32_MIN <= n <= _INT32_MAX):
        return None
    return n


def try_parse_float(value: str) -> float | None:
    """
    Invariant decimal parse. Retries with "," -> "." for comma-decimal files.
    NaN and infinity count as absent.
    """
    for candidate in (value, value.replace(",", ".")):
        if _FLOAT_RE.match(candidate):
            f = float(candidate)
            return f if math.isfinite(f) else None
    return None


class SongMetadata:
    """
    Typed, fault-tolerant view over the raw `#KEY:value` tags.
    Keys are stored upper-cased; every accessor returns None when the tag is
    missing or unusable.
    """

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, str] | None = None):
        self._fields: Mapping[str, str] = MappingProxyType(
            {k.upper(): v for k, v in (fields or {}).items()}
        )

    @property
    def fields(self) -> Mapping[str, str]:
        return self._fields

    def get(self, key: str) -> str | None:
        return self._fields.get(key.upper())

    def _int(self, key: str) -> int | None:
        v = self.get(key)
        return None if v is None else try_parse_int(v)

    def _float(self, key: str) -> float | None:
        v = self.get(key)
        return None if v is None else try_parse_float(v)

    def _yes_no(self, key: str) -> bool | None:
        v = self.get(key)
        if v is None:
            return None
        u = v.upper()
        if u == "YES":
            return True
        if u == "NO":
            return False
        return None

    def __repr__(self) -> str:
        return f"SongMetadata({dict(self._fields)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SongMetadata):
            return NotImplemented
        return dict(self._fields) == dict(other._fields)

    __hash__ = None  # type: ignore[assignment]

    # Plain text tags
    @property
    def title(self) -> str | None:
        return self.get("TITLE")

    @property
    def artist(self) -> str | None:
        return self.get("ARTIST")

    @property
    def language(self) -> str | None:
        return self.get("LANGUAGE")

    @property
    def genre(self) -> str | None:
        return self.get("GENRE")

    @property
    def year(self) -> str | None:
        return self.get("YEAR")

    @property
    def creator(self) -> str | None:
        return self.get("CREATOR")

    @property
    def edition(self) -> str | None:
        return self.get("EDITION")

    @property
    def cover(self) -> str | None:
        return self.get("COVER")

    @property
    def background(self) -> str | None:
        return self.get("BACKGROUND")

    @property
    def video(self) -> str | None:
        return self.get("VIDEO")

    @property
    def vocals(self) -> str | None:
        return self.get("VOCALS")

    @property
    def instrumental(self) -> str | None:
        return self.get("INSTRUMENTAL")

    @property
    def tags(self) -> str | None:
        return self.get("TAGS")

    @property
    def version(self) -> str | None:
        return self.get("VERSION")

    @property
    def audio(self) -> str | None:
        # MP3 is the legacy name of AUDIO
        a = self.get("AUDIO")
        return a if a is not None else self.get("MP3")

    # Numbers
    @property
    def bpm(self) -> float | None:
        return self._float("BPM")

    @property
    def gap_ms(self) -> int | None:
        return self._int("GAP")

    @property
    def video_gap_ms(self) -> int | None:
        return self._int("VIDEOGAP")

    @property
    def end_ms(self) -> int | None:
        return self._int("END")

    @property
    def preview_start_seconds(self) -> float | None:
        return self._float("PREVIEWSTART")

    @property
    def medley_start_beat(self) -> int | None:
        return self._int("MEDLEYSTARTBEAT")

    @property
    def medley_end_beat(self) -> int | None:
        return self._int("MEDLEYENDBEAT")

    # YES / NO flags
    @property
    def relative_timing(self) -> bool | None:
        return self._yes_no("RELATIVE")

    @property
    def calc_medley(self) -> bool | None:
        return self._yes_no("CALCMEDLEY")
