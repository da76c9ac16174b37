from __future__ import annotations

import json

from typer.testing import CliRunner

from ultrastar_lyrics.cli import app

runner = CliRunner()

SONG = "#TITLE:Hello\n#ARTIST:Band\n#BPM:120\n#GAP:0\n: 0 4 0 He\n: 4 4 0 llo\n- 8\n: 8 4 0 you\nE\n"


def _write(tmp_path, data: bytes):
    path = tmp_path / "song.txt"
    path.write_bytes(data)
    return path


def test_parse_prints_stats(tmp_path):
    result = runner.invoke(app, ["parse", str(_write(tmp_path, SONG.encode("utf-8")))])
    assert result.exit_code == 0
    assert "tags_total=4" in result.output
    assert "notes_total=3" in result.output
    assert "phrase_ends_total=1" in result.output
    assert "end_marker_seen=True" in result.output
    assert "bpm=120.0 gap_ms=0" in result.output


def test_parse_without_bpm(tmp_path):
    result = runner.invoke(app, ["parse", str(_write(tmp_path, b"#TITLE:x\n: 0 1 0 a\n"))])
    assert result.exit_code == 0
    assert "timing=none" in result.output


def test_lines(tmp_path):
    result = runner.invoke(app, ["lines", str(_write(tmp_path, SONG.encode("utf-8"))), "--tokens"])
    assert result.exit_code == 0
    assert "[00:00.000 - 00:01.000] He llo" in result.output
    assert "00:00.500 +500ms llo" in result.output


def test_lines_without_timing_fails(tmp_path):
    result = runner.invoke(app, ["lines", str(_write(tmp_path, b": 0 1 0 a\n"))])
    assert result.exit_code == 1


def test_export_json(tmp_path):
    result = runner.invoke(app, ["export", str(_write(tmp_path, SONG.encode("utf-8"))), "--format", "json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert [ln["text"] for ln in data["lines"]] == ["He llo", "you"]


def test_export_to_file(tmp_path):
    out = tmp_path / "out.lrc"
    result = runner.invoke(
        app, ["export", str(_write(tmp_path, SONG.encode("utf-8"))), "--format", "lrc", "--out", str(out)]
    )
    assert result.exit_code == 0
    assert "[00:00.00]He llo" in out.read_text(encoding="utf-8")


def test_export_bad_format(tmp_path):
    result = runner.invoke(app, ["export", str(_write(tmp_path, SONG.encode("utf-8"))), "--format", "xml"])
    assert result.exit_code != 0


def test_missing_file(tmp_path):
    result = runner.invoke(app, ["lines", str(tmp_path / "nope.txt")])
    assert result.exit_code == 1


def test_scan(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    folder = tmp_path / "lib" / "Band - Hello"
    folder.mkdir(parents=True)
    (folder / "song.txt").write_text(SONG, encoding="utf-8")

    result = runner.invoke(app, ["scan", str(tmp_path / "lib"), "--save"])
    assert result.exit_code == 0
    assert "Band - Hello\tBand - Hello\t-" in result.output
    assert (tmp_path / "cfg" / "ultrastar-lyrics" / "config.json").exists()
