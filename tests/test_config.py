from __future__ import annotations

import json
from pathlib import Path

from ultrastar_lyrics.config import load_config, save_config_library


def _clear_env(monkeypatch):
    for name in (
        "ULTRASTAR_LYRICS_LIBRARY",
        "ULTRASTAR_LYRICS_PLAYER",
        "ULTRASTAR_LYRICS_REFRESH_HZ",
        "ULTRASTAR_LYRICS_ALT_SCREEN",
        "ULTRASTAR_LYRICS_LEAD_IN_MS",
        "ULTRASTAR_LYRICS_TOKEN_TOLERANCE_MS",
        "ULTRASTAR_LYRICS_SKIP_INTRO_MS",
    ):
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    def test_defaults(self, tmp_path, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        cfg = load_config()
        assert cfg.config_dir == tmp_path / "ultrastar-lyrics"
        assert cfg.library_dir is None
        assert cfg.preferred_player is None
        assert cfg.lead_in_ms == 300.0
        assert cfg.token_tolerance_ms == 50.0
        assert cfg.skip_intro_threshold_ms == 3000.0
        assert cfg.use_alt_screen is True

    def test_env_overrides(self, tmp_path, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.setenv("ULTRASTAR_LYRICS_LEAD_IN_MS", "500")
        monkeypatch.setenv("ULTRASTAR_LYRICS_ALT_SCREEN", "0")
        monkeypatch.setenv("ULTRASTAR_LYRICS_PLAYER", "vlc")

        cfg = load_config()
        assert cfg.lead_in_ms == 500.0
        assert cfg.use_alt_screen is False
        assert cfg.preferred_player == "vlc"

    def test_invalid_number_falls_back(self, tmp_path, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.setenv("ULTRASTAR_LYRICS_TOKEN_TOLERANCE_MS", "lots")
        assert load_config().token_tolerance_ms == 50.0

    def test_save_library_and_load(self, tmp_path, monkeypatch):
        _clear_env(monkeypatch)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        save_config_library(tmp_path / "songs")
        assert load_config().library_dir == tmp_path / "songs"

    def test_env_library_wins_over_file(self, tmp_path, monkeypatch):
        _clear_env(monkeypatch)
        (tmp_path / "ultrastar-lyrics").mkdir()
        (tmp_path / "ultrastar-lyrics" / "config.json").write_text(
            json.dumps({"library_dir": "/from/file", "player": "mpv"}), encoding="utf-8"
        )
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.setenv("ULTRASTAR_LYRICS_LIBRARY", "/from/env")

        cfg = load_config()
        assert cfg.library_dir == Path("/from/env")
        assert cfg.preferred_player == "mpv"

    def test_broken_config_file_is_ignored(self, tmp_path, monkeypatch):
        _clear_env(monkeypatch)
        (tmp_path / "ultrastar-lyrics").mkdir()
        (tmp_path / "ultrastar-lyrics" / "config.json").write_text("{not json", encoding="utf-8")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert load_config().library_dir is None
