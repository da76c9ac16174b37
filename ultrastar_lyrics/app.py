from __future__ import annotations

import logging
import signal
import time
from typing import Sequence

from ultrastar_lyrics.config import AppConfig
from ultrastar_lyrics.library.scanner import SongEntry, find_entry
from ultrastar_lyrics.mpris.client import MprisClient
from ultrastar_lyrics.mpris.errors import NoPlayersFound, PlayerUnavailable
from ultrastar_lyrics.render.ansi import AnsiRenderer
from ultrastar_lyrics.sync.lines import build_lines
from ultrastar_lyrics.sync.timing import UltraStarTiming
from ultrastar_lyrics.sync.tracker import EMPTY_VIEW, LyricTracker
from ultrastar_lyrics.txt.model import Song
from ultrastar_lyrics.txt.parse import parse_file

logger = logging.getLogger(__name__)


def make_tracker(song: Song, cfg: AppConfig) -> LyricTracker:
    timing = UltraStarTiming.try_create(song.metadata)
    if timing is None:
        logger.info("Song has no usable BPM, lyrics disabled")
        return LyricTracker(
            lead_in_ms=cfg.lead_in_ms,
            token_tolerance_ms=cfg.token_tolerance_ms,
            skip_intro_threshold_ms=cfg.skip_intro_threshold_ms,
        )
    return LyricTracker(
        lines=build_lines(song, timing),
        lead_in_ms=cfg.lead_in_ms,
        token_tolerance_ms=cfg.token_tolerance_ms,
        skip_intro_threshold_ms=cfg.skip_intro_threshold_ms,
        first_note_start_ms=timing.first_note_start_ms(song.events),
    )


def song_title(song: Song, fallback: str) -> str:
    md = song.metadata
    if md.artist and md.title:
        return f"{md.artist} - {md.title}"
    return md.title or fallback


def _skip_status(tracker: LyricTracker, pos_ms: float) -> str | None:
    if not tracker.skip_intro_available(pos_ms) or tracker.first_note_start_ms is None:
        return None
    lead_s = (tracker.first_note_start_ms - pos_ms) / 1000.0
    return f"First note in {lead_s:.0f}s"


class _Frame:
    """Last frame drawn; redraw only when the view or the status changes."""

    def __init__(self, renderer: AnsiRenderer, title: str):
        self.renderer = renderer
        self.title = title
        self.view = EMPTY_VIEW
        self.status: str | None = None

    def tick(self, tracker: LyricTracker, pos_ms: float) -> None:
        status = _skip_status(tracker, pos_ms)
        view = tracker.update(pos_ms)
        if view is None and status == self.status:
            return
        if view is not None:
            self.view = view
        self.status = status
        self.renderer.render(self.title, self.view, status)


def _install_sigint(renderer: AnsiRenderer):
    # Handle SIGINT (Ctrl+C) gracefully
    def _on_sigint(signum, frame):
        renderer.exit()
        raise KeyboardInterrupt

    return signal.signal(signal.SIGINT, _on_sigint)


def play(
    cfg: AppConfig,
    song: Song,
    *,
    title: str,
    start_ms: float = 0.0,
    skip_intro: bool = False,
) -> int:
    """
    Replay lyrics against the local monotonic clock (no audio).
    """
    tracker = make_tracker(song, cfg)
    if not tracker.lines:
        logger.error("No timed lyrics in %s", title)
        return 1

    if skip_intro and tracker.skip_intro_available(start_ms) and tracker.first_note_start_ms is not None:
        start_ms = tracker.first_note_start_ms - cfg.lead_in_ms
        logger.debug("Skipping intro, starting at %.0f ms", start_ms)

    renderer = AnsiRenderer(use_alt_screen=cfg.use_alt_screen)
    renderer.enter()
    prev_sigint = _install_sigint(renderer)

    tick_s = 1.0 / max(cfg.refresh_hz, 1.0)
    t0 = time.monotonic() - start_ms / 1000.0
    frame = _Frame(renderer, title)
    try:
        renderer.render(title, EMPTY_VIEW)
        while True:
            frame.tick(tracker, (time.monotonic() - t0) * 1000.0)
            if tracker.past_end:
                return 0
            time.sleep(tick_s)
    finally:
        renderer.exit()
        signal.signal(signal.SIGINT, prev_sigint)


def _load_entry(entry: SongEntry, cfg: AppConfig) -> LyricTracker | None:
    if entry.txt_path is None:
        return None
    try:
        song = parse_file(entry.txt_path)
    except OSError as e:
        logger.warning("Cannot load %s: %s", entry.txt_path, e)
        return None
    return make_tracker(song, cfg)


def watch(
    cfg: AppConfig,
    entries: Sequence[SongEntry],
    *,
    preferred_player: str | None,
    skip_intro: bool = False,
) -> int:
    """
    Main watch loop:
    MPRIS -> (track, position) -> library entry -> tracker -> render on change.
    """
    renderer = AnsiRenderer(use_alt_screen=cfg.use_alt_screen)
    renderer.enter()
    prev_sigint = _install_sigint(renderer)

    try:
        last_track_key: str | None = None
        tracker: LyricTracker | None = None
        title = "ultrastar-lyrics"
        frame = _Frame(renderer, title)

        tick_s = 1.0 / max(cfg.refresh_hz, 1.0)

        while True:
            try:
                client = MprisClient.pick_player(preferred=preferred_player)
            except NoPlayersFound:
                renderer.render(title, EMPTY_VIEW, "No active MPRIS players")
                time.sleep(1.0)
                continue

            try:
                ti = client.track_info()
            except PlayerUnavailable as e:
                renderer.render(title, EMPTY_VIEW, f"MPRIS unavailable: {e}")
                time.sleep(0.5)
                continue

            # track changed?
            if ti.track_key != last_track_key:
                last_track_key = ti.track_key
                title = " - ".join(x for x in (ti.artist, ti.title) if x) or "ultrastar-lyrics"
                frame = _Frame(renderer, title)
                entry = find_entry(entries, audio_path=ti.local_path, artist=ti.artist, title=ti.title)
                tracker = _load_entry(entry, cfg) if entry is not None else None
                if tracker is None or not tracker.lines:
                    logger.info("No UltraStar lyrics for %s", title)
                    tracker = None
                    renderer.render(title, EMPTY_VIEW, "No UltraStar lyrics for this track")
                    time.sleep(0.5)
                    continue
                renderer.render(title, EMPTY_VIEW)

                if skip_intro and tracker.first_note_start_ms is not None:
                    try:
                        pos_ms = client.position_ms()
                        if tracker.skip_intro_available(pos_ms):
                            client.seek_to_ms(tracker.first_note_start_ms - cfg.lead_in_ms)
                    except PlayerUnavailable as e:
                        logger.debug("Skip intro failed: %s", e)

            if tracker is not None:
                try:
                    pos_ms = client.position_ms()
                except PlayerUnavailable:
                    # if player briefly unavailable, don't crash; keep last frame
                    time.sleep(tick_s)
                    continue

                frame.tick(tracker, pos_ms)

            time.sleep(tick_s)
    finally:
        renderer.exit()
        signal.signal(signal.SIGINT, prev_sigint)
