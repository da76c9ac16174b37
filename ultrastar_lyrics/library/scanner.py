from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator

from ultrastar_lyrics.txt.metadata import SongMetadata
from ultrastar_lyrics.txt.parse import parse_file

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".mp3", ".ogg", ".wav", ".flac")
VIDEO_EXTENSIONS = (".mp4", ".mkv", ".avi", ".webm")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp")


@dataclass(frozen=True, slots=True)
class SongEntry:
    folder_path: Path
    txt_path: Path | None
    metadata: SongMetadata | None
    audio_path: Path | None = None
    video_path: Path | None = None
    cover_path: Path | None = None
    background_path: Path | None = None

    @property
    def display(self) -> str:
        md = self.metadata
        if md and md.artist and md.title:
            return f"{md.artist} - {md.title}"
        if md and md.title:
            return md.title
        return self.folder_path.name


def _files(folder: Path) -> list[Path]:
    return sorted(p for p in folder.iterdir() if p.is_file())


def _first_txt(folder: Path) -> Path | None:
    return next((p for p in _files(folder) if p.suffix.lower() == ".txt"), None)


def _song_folders(root: Path) -> Iterator[tuple[Path, Path]]:
    """
    Breadth-first; a folder holding a .txt is a song and is not descended into.
    """
    queue = deque(sorted(p for p in root.iterdir() if p.is_dir()))
    while queue:
        folder = queue.popleft()
        txt = _first_txt(folder)
        if txt is not None:
            yield folder, txt
            continue
        queue.extend(sorted(p for p in folder.iterdir() if p.is_dir()))


def resolve_media_path(folder: Path, candidate: str | None, extensions: Iterable[str]) -> Path | None:
    """
    Tag value first (relative to the song folder), then the first file with
    a matching extension.
    """
    if candidate and candidate.strip():
        from_tag = folder / candidate
        if from_tag.is_file():
            return from_tag

    exts = {e.lower() for e in extensions}
    return next((p for p in _files(folder) if p.suffix.lower() in exts), None)


def scan_song_folder(folder: Path, txt_path: Path | None = None) -> SongEntry:
    txt_path = txt_path or _first_txt(folder)
    metadata: SongMetadata | None = None
    if txt_path is not None:
        try:
            metadata = parse_file(txt_path).metadata
        except OSError as e:
            logger.warning("Cannot read %s: %s", txt_path, e)

    return SongEntry(
        folder_path=folder,
        txt_path=txt_path,
        metadata=metadata,
        audio_path=resolve_media_path(folder, metadata.audio if metadata else None, AUDIO_EXTENSIONS),
        video_path=resolve_media_path(folder, metadata.video if metadata else None, VIDEO_EXTENSIONS),
        cover_path=resolve_media_path(folder, metadata.cover if metadata else None, IMAGE_EXTENSIONS),
        background_path=resolve_media_path(folder, metadata.background if metadata else None, IMAGE_EXTENSIONS),
    )


def scan_library(root: Path | str, on_song_imported: Callable[[int], None] | None = None) -> list[SongEntry]:
    if not str(root).strip():
        raise ValueError("Root folder is required")
    root = Path(root)
    if not root.is_dir():
        logger.info("Library folder %s does not exist", root)
        return []

    entries: list[SongEntry] = []
    for folder, txt in _song_folders(root):
        entries.append(scan_song_folder(folder, txt))
        if on_song_imported is not None:
            on_song_imported(len(entries))
    logger.debug("Scanned %d songs under %s", len(entries), root)
    return entries


def queue_song_id(library_root: Path, entry: SongEntry) -> str:
    # stable across platforms: always "/" separated
    return entry.folder_path.relative_to(library_root).as_posix()


def find_entry(
    entries: Iterable[SongEntry],
    *,
    audio_path: Path | None = None,
    artist: str | None = None,
    title: str | None = None,
) -> SongEntry | None:
    entries = list(entries)
    if audio_path is not None:
        target = Path(audio_path).resolve()
        for e in entries:
            if e.audio_path is not None and e.audio_path.resolve() == target:
                return e

    if not title:
        return None
    title_l = title.strip().lower()
    artist_l = (artist or "").strip().lower()
    for e in entries:
        md = e.metadata
        if md is None or (md.title or "").strip().lower() != title_l:
            continue
        if not artist_l or (md.artist or "").strip().lower() == artist_l:
            return e
    return None
