from __future__ import annotations

from pathlib import Path
import typer

from ultrastar_lyrics.app import play as play_loop
from ultrastar_lyrics.app import song_title
from ultrastar_lyrics.app import watch as watch_loop
from ultrastar_lyrics.config import load_config, save_config_library
from ultrastar_lyrics.library.scanner import queue_song_id, scan_library
from ultrastar_lyrics.logging_setup import setup_logging
from ultrastar_lyrics.mpris.client import MprisClient
from ultrastar_lyrics.sync.lines import build_lines
from ultrastar_lyrics.sync.timing import UltraStarTiming
from ultrastar_lyrics.txt.decode import read_lines
from ultrastar_lyrics.txt.export import export_json, export_lrc, export_srt
from ultrastar_lyrics.txt.model import Song
from ultrastar_lyrics.txt.parse import parse, parse_with_stats


app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_song(txt_path: Path) -> Song:
    try:
        return parse(read_lines(txt_path))
    except OSError as e:
        typer.echo(f"Error: cannot read {txt_path}: {e}", err=True)
        raise typer.Exit(code=1)


def _fmt_ms(ms: float) -> str:
    m, rem = divmod(max(int(ms), 0), 60_000)
    return f"{m:02d}:{rem / 1000:06.3f}"


@app.command("parse")
def parse_song(txt_path: Path):
    """Parse an UltraStar txt file and print stats."""
    try:
        lines = read_lines(txt_path)
    except OSError as e:
        typer.echo(f"Error: cannot read {txt_path}: {e}", err=True)
        raise typer.Exit(code=1)

    song, stats = parse_with_stats(lines)
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"lines_blank={stats.lines_blank}")
    typer.echo(f"lines_ignored={stats.lines_ignored}")
    typer.echo(f"tags_total={stats.tags_total}")
    typer.echo(f"notes_total={stats.notes_total}")
    typer.echo(f"phrase_ends_total={stats.phrase_ends_total}")
    typer.echo(f"player_markers_total={stats.player_markers_total}")
    typer.echo(f"end_marker_seen={stats.end_marker_seen}")
    typer.echo(f"tags={dict(song.metadata.fields)}")

    timing = UltraStarTiming.try_create(song.metadata)
    if timing is None:
        typer.echo("timing=none")
    else:
        typer.echo(f"bpm={timing.bpm} gap_ms={timing.gap_ms}")
        first = timing.first_note_start_ms(song.events)
        typer.echo(f"first_note_ms={first if first is not None else 'none'}")


@app.command()
def lines(
    txt_path: Path,
    tokens: bool = typer.Option(False, "--tokens", help="Show per-syllable timing"),
):
    """Print timed lyric lines."""
    song = _load_song(txt_path)
    built = build_lines(song)
    if not built:
        typer.echo("No timed lyrics (missing BPM or no notes)", err=True)
        raise typer.Exit(code=1)
    for ln in built:
        typer.echo(f"[{_fmt_ms(ln.start_ms)} - {_fmt_ms(ln.end_ms)}] {ln.text}")
        if tokens:
            for t in ln.tokens:
                typer.echo(f"    {_fmt_ms(t.start_ms)} +{t.end_ms - t.start_ms:.0f}ms {t.text}")


@app.command()
def export(
    txt_path: Path,
    fmt: str = typer.Option("srt", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Export lyric lines to SRT/JSON/LRC."""
    song = _load_song(txt_path)
    built = build_lines(song)
    fmt_l = fmt.lower()
    if fmt_l == "json":
        data = export_json(built, song.metadata)
    elif fmt_l == "lrc":
        data = export_lrc(built, song.metadata)
    elif fmt_l == "srt":
        data = export_srt(built)
    else:
        raise typer.BadParameter("format must be one of: lrc, srt, json")

    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


@app.command()
def scan(
    root: Path | None = typer.Argument(None, help="Song library folder (default: configured library)"),
    save: bool = typer.Option(False, "--save", help="Remember ROOT as the library folder"),
):
    """List songs found in a library folder."""
    cfg = load_config()
    root = root or cfg.library_dir
    if root is None:
        typer.echo("Error: no library folder given or configured", err=True)
        raise typer.Exit(code=1)
    if save:
        save_config_library(root)

    entries = scan_library(root)
    for e in entries:
        audio = e.audio_path.name if e.audio_path else "-"
        typer.echo(f"{queue_song_id(root, e)}\t{e.display}\t{audio}")
    typer.echo(f"{len(entries)} songs", err=True)


@app.command()
def play(
    txt_path: Path,
    start_ms: float = typer.Option(0.0, "--start-ms", help="Start position (ms)"),
    skip_intro: bool = typer.Option(False, "--skip-intro", help="Jump to the first note"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
):
    """Replay lyrics in the terminal without audio."""
    cfg = load_config()
    if no_alt_screen:
        cfg = cfg.__class__(**{**cfg.__dict__, "use_alt_screen": False})
    setup_logging(debug)
    song = _load_song(txt_path)
    raise typer.Exit(
        code=play_loop(cfg, song, title=song_title(song, txt_path.stem), start_ms=start_ms, skip_intro=skip_intro)
    )


@app.command()
def watch(
    player: str | None = typer.Option(None, "--player", help="MPRIS service or short name (e.g. vlc)"),
    library: Path | None = typer.Option(None, "--library", help="Song library folder"),
    skip_intro: bool = typer.Option(False, "--skip-intro", help="Seek the player to the first note"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    refresh_hz: float | None = typer.Option(None, "--refresh-hz", help="Polling frequency (Hz)"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
):
    """
    Follow an MPRIS player and show lyrics for songs from the library.
    """
    cfg = load_config()
    if refresh_hz is not None:
        cfg = cfg.__class__(**{**cfg.__dict__, "refresh_hz": refresh_hz})
    if no_alt_screen:
        cfg = cfg.__class__(**{**cfg.__dict__, "use_alt_screen": False})

    setup_logging(debug)
    root = library or cfg.library_dir
    if root is None:
        typer.echo("Error: no library folder given or configured", err=True)
        raise typer.Exit(code=1)
    entries = scan_library(root)
    raise typer.Exit(
        code=watch_loop(cfg, entries, preferred_player=player or cfg.preferred_player, skip_intro=skip_intro)
    )


@app.command()
def players():
    """List available MPRIS players."""
    for p in MprisClient.list_players():
        typer.echo(p)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
