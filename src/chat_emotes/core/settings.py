"""Settings management for chat-emotes."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from appdirs import user_config_dir

logger = logging.getLogger(__name__)

APP_NAME = "chat-emotes"
APP_AUTHOR = "chat-emotes"

KNOWN_PROVIDERS = ("ffz", "bttv")


def get_config_dir() -> Path:
    """Get the configuration directory."""
    path = Path(user_config_dir(APP_NAME, APP_AUTHOR))
    path.mkdir(parents=True, exist_ok=True)
    return path


@dataclass
class EmoteSettings:
    """Emote catalog and animation settings."""

    decode_cache_size: int = 128  # Decoded animated emotes kept in memory
    emote_providers: list[str] = field(default_factory=lambda: list(KNOWN_PROVIDERS))
    animate_emotes: bool = True
    gif_interval_ms: int = 100
    prefer_low_res: bool = False

    @classmethod
    def load(cls, path: Path | None = None) -> "EmoteSettings":
        """Load settings from file."""
        if path is None:
            path = get_config_dir() / "settings.json"

        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            return cls._from_dict(data)
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable settings file {path}: {e}")
            return cls()

    def save(self, path: Path | None = None) -> None:
        """Save settings to file."""
        if path is None:
            path = get_config_dir() / "settings.json"

        path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic write: write to temp file then rename to prevent corruption on crash
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix="settings_")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._to_dict(), f, indent=2)
            os.replace(tmp_path, path)  # Atomic on POSIX
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    @staticmethod
    def _validate_int(value, default: int, min_val: int = 0, max_val: int | None = None) -> int:
        """Validate and constrain an integer value."""
        if not isinstance(value, int) or isinstance(value, bool):
            return default
        if value < min_val:
            return min_val
        if max_val is not None and value > max_val:
            return max_val
        return value

    @classmethod
    def _from_dict(cls, data: dict) -> "EmoteSettings":
        """Create settings from a dictionary with validation."""
        settings = cls()
        settings.decode_cache_size = cls._validate_int(
            data.get("decode_cache_size"), 128, min_val=1, max_val=4096
        )
        settings.gif_interval_ms = cls._validate_int(
            data.get("gif_interval_ms"), 100, min_val=10, max_val=1000
        )
        providers = data.get("emote_providers", settings.emote_providers)
        if isinstance(providers, list):
            settings.emote_providers = [p for p in providers if p in KNOWN_PROVIDERS]
        settings.animate_emotes = bool(data.get("animate_emotes", settings.animate_emotes))
        settings.prefer_low_res = bool(data.get("prefer_low_res", settings.prefer_low_res))
        return settings

    def _to_dict(self) -> dict:
        return {
            "decode_cache_size": self.decode_cache_size,
            "emote_providers": list(self.emote_providers),
            "animate_emotes": self.animate_emotes,
            "gif_interval_ms": self.gif_interval_ms,
            "prefer_low_res": self.prefer_low_res,
        }
