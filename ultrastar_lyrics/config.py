from __future__ import annotations

import json
from dataclasses import dataclass
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "ultrastar-lyrics"
    return Path.home() / ".config" / "ultrastar-lyrics"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    # Storage
    config_dir: Path
    library_dir: Path | None

    # MPRIS
    preferred_player: str | None

    # Rendering
    refresh_hz: float
    use_alt_screen: bool

    # Sync
    lead_in_ms: float
    token_tolerance_ms: float
    skip_intro_threshold_ms: float


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r", name, raw)
        return default


def load_config() -> AppConfig:
    config_dir = _config_dir()
    file_cfg = _load_file(config_dir / "config.json")

    # Priority: env → config.json → default
    library_env = os.getenv("ULTRASTAR_LYRICS_LIBRARY") or file_cfg.get("library_dir")
    library_dir = Path(library_env).expanduser() if library_env else None

    use_alt_screen = os.getenv("ULTRASTAR_LYRICS_ALT_SCREEN", "1") not in ("0", "false", "False")

    return AppConfig(
        config_dir=config_dir,
        library_dir=library_dir,
        preferred_player=os.getenv("ULTRASTAR_LYRICS_PLAYER") or file_cfg.get("player") or None,
        refresh_hz=_env_float("ULTRASTAR_LYRICS_REFRESH_HZ", 30.0),
        use_alt_screen=use_alt_screen,
        lead_in_ms=_env_float("ULTRASTAR_LYRICS_LEAD_IN_MS", 300.0),
        token_tolerance_ms=_env_float("ULTRASTAR_LYRICS_TOKEN_TOLERANCE_MS", 50.0),
        skip_intro_threshold_ms=_env_float("ULTRASTAR_LYRICS_SKIP_INTRO_MS", 3000.0),
    )


def _load_file(cfg_path: Path) -> dict[str, str]:
    if not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return {k: str(v) for k, v in data.items() if isinstance(v, (str, int, float))}


def save_config_library(library_dir: Path) -> None:
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data = _load_file(cfg_path)
    data["library_dir"] = str(Path(library_dir).expanduser())
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
