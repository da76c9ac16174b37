from pathlib import Path

import pytest

from ultrastar_lyrics.library.scanner import find_entry, queue_song_id, scan_library, scan_song_folder

SONG_TXT = "#TITLE:Song {n}\n#ARTIST:Band\n#MP3:track.mp3\n#BPM:120\n: 0 4 0 la\nE\n"


def _make_song(folder: Path, n: int, audio: str = "track.mp3") -> Path:
    folder.mkdir(parents=True)
    (folder / "song.txt").write_text(SONG_TXT.format(n=n), encoding="utf-8")
    (folder / audio).write_bytes(b"")
    return folder


def test_scan_finds_nested_songs(tmp_path):
    _make_song(tmp_path / "A", 1)
    _make_song(tmp_path / "Pack" / "B", 2)
    imported: list[int] = []

    entries = scan_library(tmp_path, on_song_imported=imported.append)

    assert [queue_song_id(tmp_path, e) for e in entries] == ["A", "Pack/B"]
    assert imported == [1, 2]
    assert entries[1].metadata.title == "Song 2"
    assert entries[1].display == "Band - Song 2"


def test_song_folders_are_not_descended(tmp_path):
    song = _make_song(tmp_path / "A", 1)
    _make_song(song / "extras", 2)
    assert len(scan_library(tmp_path)) == 1


def test_missing_root_is_empty(tmp_path):
    assert scan_library(tmp_path / "nope") == []


def test_empty_root_argument_raises():
    with pytest.raises(ValueError):
        scan_library("  ")


def test_media_from_tag_then_extension(tmp_path):
    folder = _make_song(tmp_path / "A", 1)
    (folder / "cover.JPG").write_bytes(b"")
    (folder / "clip.webm").write_bytes(b"")

    entry = scan_song_folder(folder)

    assert entry.audio_path == folder / "track.mp3"
    assert entry.cover_path == folder / "cover.JPG"
    assert entry.background_path == folder / "cover.JPG"
    assert entry.video_path == folder / "clip.webm"


def test_missing_tag_file_falls_back_to_extension(tmp_path):
    folder = _make_song(tmp_path / "A", 1, audio="other.ogg")
    assert scan_song_folder(folder).audio_path == folder / "other.ogg"


def test_unreadable_txt_keeps_entry(tmp_path, monkeypatch, caplog):
    folder = tmp_path / "Broken"
    folder.mkdir()
    (folder / "song.txt").write_bytes(b"#TITLE:x\n")

    def _fail(path):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr("ultrastar_lyrics.library.scanner.parse_file", _fail)
    (entry,) = scan_library(tmp_path)
    assert entry.metadata is None
    assert entry.display == "Broken"
    assert "Cannot read" in caplog.text


def test_find_entry(tmp_path):
    _make_song(tmp_path / "A", 1)
    _make_song(tmp_path / "B", 2)
    entries = scan_library(tmp_path)

    assert find_entry(entries, audio_path=tmp_path / "B" / "track.mp3") is entries[1]
    assert find_entry(entries, artist="band", title="song 1") is entries[0]
    assert find_entry(entries, title="Song 2") is entries[1]
    assert find_entry(entries, artist="Other", title="Song 2") is None
    assert find_entry(entries) is None


def test_stray_bytes_after_bom_keep_metadata(tmp_path):
    folder = tmp_path / "Stray"
    folder.mkdir()
    (folder / "song.txt").write_bytes(b"\xef\xbb\xbf#TITLE:Caf\xe9\n#ARTIST:Band\n")
    (entry,) = scan_library(tmp_path)
    assert entry.metadata is not None
    assert entry.metadata.artist == "Band"
    assert entry.display == "Band - Caf\ufffd"
