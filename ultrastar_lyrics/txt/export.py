from __future__ import annotations

import json
from typing import Sequence

from ultrastar_lyrics.sync.lines import LyricLine

from .metadata import SongMetadata


def export_json(lines: Sequence[LyricLine], metadata: SongMetadata | None = None) -> str:
    return json.dumps(
        {
            "tags": dict(metadata.fields) if metadata else {},
            "lines": [
                {
                    "start_ms": ln.start_ms,
                    "end_ms": ln.end_ms,
                    "text": ln.text,
                    "tokens": [
                        {"start_ms": t.start_ms, "end_ms": t.end_ms, "text": t.text} for t in ln.tokens
                    ],
                }
                for ln in lines
            ],
        },
        ensure_ascii=False,
        indent=2,
    )


def _fmt_lrc_time(ms: float) -> str:
    m, rem = divmod(max(int(round(ms)), 0), 60_000)
    s, ms2 = divmod(rem, 1_000)
    # keep 2 decimals for compatibility
    return f"{m:02d}:{s:02d}.{ms2 // 10:02d}"


def export_lrc(lines: Sequence[LyricLine], metadata: SongMetadata | None = None, include_tags: bool = True) -> str:
    out: list[str] = []
    if include_tags and metadata is not None:
        for tag, value in (("ar", metadata.artist), ("ti", metadata.title), ("by", metadata.creator)):
            if value:
                out.append(f"[{tag}:{value}]")

    for ln in lines:
        out.append(f"[{_fmt_lrc_time(ln.start_ms)}]{ln.text}")
    return "\n".join(out) + ("\n" if out else "")


def _fmt_srt_time(ms: float) -> str:
    # HH:MM:SS,mmm
    h, rem = divmod(max(int(round(ms)), 0), 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(lines: Sequence[LyricLine]) -> str:
    """
    One cue per lyric line, using the line's own start/end.
    """
    out: list[str] = []
    for i, ln in enumerate(lines, start=1):
        out.append(str(i))
        out.append(f"{_fmt_srt_time(ln.start_ms)} --> {_fmt_srt_time(ln.end_ms)}")
        out.append(ln.text)
        out.append("")
    return "\n".join(out)
