"""Core settings for chat-emotes."""

from .settings import EmoteSettings, get_config_dir

__all__ = [
    "EmoteSettings",
    "get_config_dir",
]
