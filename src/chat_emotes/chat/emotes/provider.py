"""Emote providers for Twitch, FFZ, and BTTV.

Providers turn already-decoded API payloads into catalog entries. Fetching
is left to the transport; a provider only ever sees a complete payload.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from ..models import (
    CHANNEL_BTTV,
    CHANNEL_FFZ,
    GLOBAL_BTTV,
    GLOBAL_FFZ,
    GLOBAL_TWITCH,
    BadgeSet,
    BadgeTable,
    BadgeVersion,
    Emote,
    EmoteProvider,
    EmoteScope,
    channel_twitch,
)
from .normalizer import normalize_code

logger = logging.getLogger(__name__)

TWITCH_EMOTE_BASE_URL = "https://static-cdn.jtvnw.net/emoticons/v1/"
TWITCH_EMOTE_SIZE = "3.0"
TWITCH_LOW_RES_EMOTE_SIZE = "2.0"
BTTV_CDN_BASE_URL = "https://cdn.betterttv.net/emote/"

# Set 0 is the default set; 42 holds the monkey emotes, shown with the globals
GLOBAL_TWITCH_SETS = frozenset({"0", "42"})
FALLBACK_SET_CHANNEL = "Twitch"

SetResolver = Callable[[str], Awaitable[str | None]]


def twitch_emote_url(emote_id: str, low_res: bool = False) -> str:
    """CDN URL of a Twitch emote."""
    size = TWITCH_LOW_RES_EMOTE_SIZE if low_res else TWITCH_EMOTE_SIZE
    return f"{TWITCH_EMOTE_BASE_URL}{emote_id}/{size}"


def _emote_id(value) -> str:
    """Emote id as a string, or "" when the payload value is not an id."""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return ""
    return str(value)


def _https(url: str) -> str:
    if url.startswith("//"):
        return "https:" + url
    return url


class BaseEmoteProvider(ABC):
    """Base class for emote providers."""

    @property
    @abstractmethod
    def name(self) -> EmoteProvider:
        """Provider name."""

    @abstractmethod
    def parse_global_emotes(self, payload) -> list[Emote]:
        """Parse this provider's global emote payload."""

    @abstractmethod
    def parse_channel_emotes(self, payload) -> list[Emote]:
        """Parse a channel emote payload."""


class TwitchProvider:
    """First-party Twitch emotes, grouped into emote sets."""

    name = EmoteProvider.TWITCH

    async def build_emotes(
        self, payload: dict, resolve_set: SetResolver | None = None
    ) -> tuple[list[Emote], list[Emote]]:
        """Split a user's emote sets into (global, channel-scoped) emotes.

        Set owners are looked up concurrently through ``resolve_set``; a
        failed lookup files the set under the "Twitch" channel.
        """
        sets = payload.get("emoticon_sets", payload.get("sets", {})) if isinstance(payload, dict) else None
        if not isinstance(sets, dict):
            logger.warning(f"Twitch emote payload has no usable sets: {type(sets).__name__}")
            return [], []

        set_ids = [str(set_id) for set_id in sets]
        owners = await self._resolve_owners(set_ids, resolve_set)
        return await asyncio.to_thread(self.parse_sets, sets, owners)

    def parse_sets(self, sets: dict, owners: dict[str, str]) -> tuple[list[Emote], list[Emote]]:
        """Build (global, channel-scoped) emotes from sets with resolved owners."""
        global_emotes: list[Emote] = []
        channel_emotes: list[Emote] = []
        for set_id, entries in sets.items():
            set_id = str(set_id)
            if not isinstance(entries, list):
                logger.debug(f"Skipping Twitch emote set {set_id}: not a list")
                continue
            if set_id in GLOBAL_TWITCH_SETS:
                scope = GLOBAL_TWITCH
            else:
                scope = channel_twitch(owners.get(set_id) or FALLBACK_SET_CHANNEL)
            for data in entries:
                emote = self._parse_emote(data, scope)
                if emote is None:
                    continue
                if scope.is_global:
                    global_emotes.append(emote)
                else:
                    channel_emotes.append(emote)

        logger.debug(
            f"Parsed {len(global_emotes)} global and {len(channel_emotes)} channel Twitch emotes "
            f"from {len(sets)} sets"
        )
        return global_emotes, channel_emotes

    async def _resolve_owners(
        self, set_ids: list[str], resolve_set: SetResolver | None
    ) -> dict[str, str]:
        lookups = [s for s in set_ids if s not in GLOBAL_TWITCH_SETS]
        if not lookups or resolve_set is None:
            return {}
        results = await asyncio.gather(
            *(resolve_set(set_id) for set_id in lookups), return_exceptions=True
        )
        owners: dict[str, str] = {}
        for set_id, result in zip(lookups, results):
            if isinstance(result, BaseException):
                logger.debug(f"Emote set lookup failed for {set_id}: {result}")
                continue
            if result:
                owners[set_id] = result
        return owners

    def _parse_emote(self, data, scope: EmoteScope) -> Emote | None:
        if not isinstance(data, dict):
            return None
        emote_id = _emote_id(data.get("id"))
        name = data.get("code") or data.get("name") or ""
        if not emote_id or not name or not isinstance(name, str):
            logger.debug(f"Skipping Twitch emote without id/code: {data}")
            return None

        if scope.is_global:
            name = normalize_code(name)

        return Emote(
            code=name,
            url=twitch_emote_url(emote_id),
            low_res_url=twitch_emote_url(emote_id, low_res=True),
            is_animated=False,
            id=emote_id,
            scale=1,
            scope=scope,
        )


class FFZProvider(BaseEmoteProvider):
    """FrankerFaceZ emote provider."""

    @property
    def name(self) -> EmoteProvider:
        return EmoteProvider.FFZ

    def parse_global_emotes(self, payload) -> list[Emote]:
        """Parse FFZ global emotes (every set in the payload)."""
        return self._parse_sets(payload, GLOBAL_FFZ)

    def parse_channel_emotes(self, payload) -> list[Emote]:
        """Parse FFZ room emotes."""
        return self._parse_sets(payload, CHANNEL_FFZ)

    def parse_moderator_badge(self, payload) -> str | None:
        """Custom moderator badge of an FFZ room, if the room has one."""
        if not isinstance(payload, dict):
            return None
        room = payload.get("room") or {}
        url = room.get("moderator_badge") if isinstance(room, dict) else None
        if not url or not isinstance(url, str):
            return None
        return _https(url)

    def _parse_sets(self, payload, scope: EmoteScope) -> list[Emote]:
        emotes: list[Emote] = []
        sets = payload.get("sets", {}) if isinstance(payload, dict) else None
        if not isinstance(sets, dict):
            logger.warning("FFZ payload has no usable sets")
            return emotes

        for set_data in sets.values():
            if not isinstance(set_data, dict):
                continue
            emoticons = set_data.get("emoticons") or []
            if not isinstance(emoticons, list):
                logger.debug("Skipping FFZ set whose emoticons are not a list")
                continue
            for emote_data in emoticons:
                emote = self._parse_emote(emote_data, scope)
                if emote:
                    emotes.append(emote)
        return emotes

    def _parse_emote(self, data, scope: EmoteScope) -> Emote | None:
        """Parse an FFZ emote from API data."""
        if not isinstance(data, dict):
            return None
        emote_id = _emote_id(data.get("id"))
        name = data.get("name", "")
        urls = data.get("urls") or {}

        if not emote_id or not name or not isinstance(name, str) or not isinstance(urls, dict):
            logger.debug(f"Skipping malformed FFZ emote: {data}")
            return None
        urls = {size: url for size, url in urls.items() if isinstance(url, str) and url}

        # FFZ sizes are 1x/2x/4x; scale brings the chosen image up to 4x
        if urls.get("4"):
            scale, url = 1, urls["4"]
        elif urls.get("2"):
            scale, url = 2, urls["2"]
        elif urls.get("1"):
            scale, url = 4, urls["1"]
        else:
            logger.debug(f"Skipping FFZ emote {name} without urls")
            return None
        low_res_url = urls.get("2") or urls.get("1") or url

        return Emote(
            code=name,
            url=_https(url),
            low_res_url=_https(low_res_url),
            is_animated=False,
            id=emote_id,
            scale=scale,
            scope=scope,
        )


class BTTVProvider(BaseEmoteProvider):
    """BetterTTV emote provider."""

    @property
    def name(self) -> EmoteProvider:
        return EmoteProvider.BTTV

    def parse_global_emotes(self, payload) -> list[Emote]:
        """Parse the BTTV global emote list."""
        if not isinstance(payload, list):
            logger.warning("BTTV global payload is not a list")
            return []
        return [e for e in (self._parse_emote(d, GLOBAL_BTTV) for d in payload) if e]

    def parse_channel_emotes(self, payload) -> list[Emote]:
        """Parse BTTV channel and shared emotes."""
        if not isinstance(payload, dict):
            logger.warning("BTTV channel payload is not an object")
            return []
        entries = []
        for field in ("channelEmotes", "sharedEmotes"):
            emotes = payload.get(field) or []
            if not isinstance(emotes, list):
                logger.debug(f"Skipping BTTV {field}: not a list")
                continue
            entries.extend(emotes)
        return [e for e in (self._parse_emote(d, CHANNEL_BTTV) for d in entries) if e]

    def _parse_emote(self, data, scope: EmoteScope) -> Emote | None:
        """Parse a BTTV emote from API data."""
        if not isinstance(data, dict):
            return None
        emote_id = _emote_id(data.get("id"))
        code = data.get("code", "")

        if not emote_id or not code or not isinstance(code, str):
            logger.debug(f"Skipping malformed BTTV emote: {data}")
            return None

        # BTTV CDN: https://cdn.betterttv.net/emote/{id}/{size}x
        return Emote(
            code=code,
            url=f"{BTTV_CDN_BASE_URL}{emote_id}/3x",
            low_res_url=f"{BTTV_CDN_BASE_URL}{emote_id}/2x",
            is_animated=data.get("imageType") == "gif",
            id=emote_id,
            scale=1,
            scope=scope,
        )


def parse_badge_table(payload) -> BadgeTable:
    """Parse a Twitch badge display payload into a badge table."""
    table: BadgeTable = {}
    badge_sets = payload.get("badge_sets", {}) if isinstance(payload, dict) else None
    if not isinstance(badge_sets, dict):
        logger.warning("Badge payload has no usable badge_sets")
        return table

    for set_id, set_data in badge_sets.items():
        versions = set_data.get("versions") if isinstance(set_data, dict) else None
        if not isinstance(versions, dict):
            continue
        badge_set = BadgeSet(set_id=set_id)
        for version_id, version in versions.items():
            if not isinstance(version, dict):
                continue
            images = {k: v for k, v in version.items() if k.startswith("image_url_") and isinstance(v, str)}
            url = images.get("image_url_4x") or images.get("image_url_2x")
            if not url:
                logger.debug(f"Skipping badge {set_id}/{version_id} without image url")
                continue
            title = version.get("title")
            badge_set.versions[str(version_id)] = BadgeVersion(
                high_res_url=url,
                low_res_url=images.get("image_url_2x") or images.get("image_url_1x", ""),
                title=title if isinstance(title, str) else "",
            )
        if badge_set.versions:
            table[set_id] = badge_set
    return table
