"""Data models for the emote and badge catalogs."""

from dataclasses import dataclass, field
from enum import Enum


class EmoteProvider(str, Enum):
    """Emote catalog sources."""

    TWITCH = "twitch"
    FFZ = "ffz"
    BTTV = "bttv"


_PROVIDER_TITLES = {
    EmoteProvider.TWITCH: "Twitch",
    EmoteProvider.FFZ: "FrankerFaceZ",
    EmoteProvider.BTTV: "BetterTTV",
}


@dataclass(frozen=True)
class EmoteScope:
    """Where an emote applies: globally or in one channel."""

    provider: EmoteProvider
    is_global: bool
    channel_name: str = ""  # Only set for channel-scoped Twitch emotes (owning channel)

    @property
    def title(self) -> str:
        """Section header used when grouping emotes for a picker."""
        provider_title = _PROVIDER_TITLES[self.provider]
        if self.is_global:
            return f"Global {provider_title}"
        if self.provider == EmoteProvider.TWITCH:
            return self.channel_name or provider_title
        return f"Channel {provider_title}"


GLOBAL_TWITCH = EmoteScope(EmoteProvider.TWITCH, is_global=True)
GLOBAL_FFZ = EmoteScope(EmoteProvider.FFZ, is_global=True)
CHANNEL_FFZ = EmoteScope(EmoteProvider.FFZ, is_global=False)
GLOBAL_BTTV = EmoteScope(EmoteProvider.BTTV, is_global=True)
CHANNEL_BTTV = EmoteScope(EmoteProvider.BTTV, is_global=False)


def channel_twitch(channel_name: str) -> EmoteScope:
    """Scope for a subscriber emote owned by the given channel."""
    return EmoteScope(EmoteProvider.TWITCH, is_global=False, channel_name=channel_name)


@dataclass(frozen=True)
class Emote:
    """A catalog entry from any provider."""

    code: str  # Text code (e.g., "Kappa")
    url: str
    low_res_url: str
    is_animated: bool
    id: str
    scale: int
    scope: EmoteScope


@dataclass
class MessageEmoteOccurrence:
    """An emote found in one message.

    Ranges are half-open ``(start, end)`` pairs over the UTF-16 code units
    of the raw message text.
    """

    code: str
    id: str
    url: str
    scale: int = 1
    is_animated: bool = False
    is_first_party: bool = False
    ranges: list[tuple[int, int]] = field(default_factory=list)


@dataclass(frozen=True)
class BadgeVersion:
    """Image URLs for one version of a badge."""

    high_res_url: str
    low_res_url: str = ""
    title: str = ""


@dataclass
class BadgeSet:
    """All versions of a badge set (e.g. "subscriber")."""

    set_id: str
    versions: dict[str, BadgeVersion] = field(default_factory=dict)


BadgeTable = dict[str, BadgeSet]


@dataclass(frozen=True)
class CatalogKey:
    """Identifies one catalog snapshot."""

    provider: EmoteProvider
    is_global: bool
    channel: str | None = None
