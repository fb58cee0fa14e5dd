from __future__ import annotations

import json
import logging
from dataclasses import dataclass
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "terminal-karaoke"
    return Path.home() / ".config" / "terminal-karaoke"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    config_dir: Path

    # Song; None means the built-in example
    song_path: Path | None

    # Playback
    refresh_hz: float
    offset_step_s: float

    # Rendering
    context_lines: int  # lines above/below current
    progress_width: int
    use_alt_screen: bool

    @property
    def tick_s(self) -> float:
        # rates below 1 Hz (e.g. from the environment) run at 1 Hz
        return 1.0 / max(self.refresh_hz, 1.0)


def load_config() -> AppConfig:
    config_dir = _config_dir()
    return AppConfig(
        config_dir=config_dir,
        song_path=_load_song_path(config_dir),
        refresh_hz=float(os.getenv("TERMINAL_KARAOKE_REFRESH_HZ", "20.0")),
        offset_step_s=float(os.getenv("TERMINAL_KARAOKE_OFFSET_STEP", "0.1")),
        context_lines=int(os.getenv("TERMINAL_KARAOKE_CONTEXT_LINES", "2")),
        progress_width=int(os.getenv("TERMINAL_KARAOKE_PROGRESS_WIDTH", "30")),
        use_alt_screen=os.getenv("TERMINAL_KARAOKE_ALT_SCREEN", "1") not in ("0", "false", "False"),
    )


def _load_song_path(config_dir: Path) -> Path | None:
    # Priority: config.json → TERMINAL_KARAOKE_SONG → built-in
    cfg_path = config_dir / "config.json"
    if cfg_path.exists():
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable %s: %s", cfg_path, e)
        else:
            song = data.get("song") if isinstance(data, dict) else None
            if song:
                return Path(song).expanduser()
    env_song = os.getenv("TERMINAL_KARAOKE_SONG")
    if env_song:
        return Path(env_song).expanduser()
    return None


def save_config_song(song: Path | None) -> None:
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, str] = {}
    if cfg_path.exists():
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            data = {}
    if song is None:
        data.pop("song", None)
    else:
        data["song"] = str(song)
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
