"""Emote manager - owns the catalogs and annotates chat messages."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from ..core.settings import EmoteSettings
from .backfill import BackfillGuard
from .emotes.cache import DecodeCache
from .emotes.catalog import CatalogStore
from .emotes.image import FrameCallbackRegistry, GifTimer
from .emotes.matcher import find_third_party_emotes
from .emotes.positions import parse_emote_positions
from .emotes.provider import BTTVProvider, FFZProvider, SetResolver, TwitchProvider, parse_badge_table
from .models import Emote, EmoteProvider, MessageEmoteOccurrence

logger = logging.getLogger(__name__)


def parse_badge_tag(badges_tag: str) -> list[tuple[str, str]]:
    """Parse Twitch badges from IRC tags.

    Format: badge_name/version,badge_name/version
    """
    badges: list[tuple[str, str]] = []
    if not badges_tag:
        return badges

    for badge_str in badges_tag.split(","):
        if "/" in badge_str:
            name, version = badge_str.split("/", 1)
            if name:
                badges.append((name, version))
    return badges


class EmoteManager:
    """Emote catalogs plus the per-message annotation surface.

    Refresh coroutines take complete, already-decoded payloads; a ``None``
    payload means the fetch failed and the previous catalog stays in place.
    Catalog builds run in a worker thread and always publish once started.
    """

    def __init__(self, settings: EmoteSettings | None = None):
        self.settings = settings or EmoteSettings()
        self._store = CatalogStore()
        self._backfill = BackfillGuard()
        self._frames = FrameCallbackRegistry()
        self._decode_cache = DecodeCache(
            capacity=self.settings.decode_cache_size,
            on_release=self._on_decoded_released,
        )
        self._twitch = TwitchProvider()
        self._ffz = FFZProvider()
        self._bttv = BTTVProvider()

    @property
    def store(self) -> CatalogStore:
        return self._store

    @property
    def decode_cache(self) -> DecodeCache:
        return self._decode_cache

    @property
    def frames(self) -> FrameCallbackRegistry:
        return self._frames

    def close(self) -> None:
        """Release decoded images and forget backfill state."""
        self._decode_cache.clear()
        self._backfill.reset()
        logger.debug("Emote manager closed")

    def create_gif_timer(self, parent=None) -> GifTimer:
        """Animation timer driving every registered on-screen emote.

        Started only when emote animation is enabled; needs a running Qt
        event loop to tick.
        """
        timer = GifTimer(self._frames, interval_ms=self.settings.gif_interval_ms, parent=parent)
        if self.settings.animate_emotes:
            timer.start()
        return timer

    def _on_decoded_released(self, key: str, handle: Any) -> None:
        self._frames.invalidate(key)
        self._frames.unregister_key(key)
        recycle = getattr(handle, "recycle", None)
        if callable(recycle):
            recycle()

    def _enabled_providers(self) -> list[EmoteProvider]:
        enabled = set(self.settings.emote_providers)
        return [p for p in (EmoteProvider.FFZ, EmoteProvider.BTTV) if p.value in enabled]

    # --- catalog refresh ---

    async def set_twitch_emotes(self, payload: dict | None, resolve_set: SetResolver | None = None) -> None:
        """Replace the user's Twitch emotes (global and subscriber sets)."""
        if payload is None:
            return
        global_emotes, channel_emotes = await self._twitch.build_emotes(payload, resolve_set)
        await asyncio.to_thread(self._store.replace, EmoteProvider.TWITCH, True, None, global_emotes)
        await asyncio.to_thread(self._store.replace, EmoteProvider.TWITCH, False, None, channel_emotes)

    async def set_ffz_emotes(self, channel: str, payload: dict | None) -> None:
        if payload is None:
            return
        emotes = await asyncio.to_thread(self._ffz.parse_channel_emotes, payload)
        await asyncio.to_thread(self._store.replace, EmoteProvider.FFZ, False, channel, emotes)
        self._store.set_moderator_badge(channel, self._ffz.parse_moderator_badge(payload))

    async def set_ffz_global_emotes(self, payload: dict | None) -> None:
        if payload is None:
            return
        emotes = await asyncio.to_thread(self._ffz.parse_global_emotes, payload)
        await asyncio.to_thread(self._store.replace, EmoteProvider.FFZ, True, None, emotes)

    async def set_bttv_emotes(self, channel: str, payload: dict | None) -> None:
        if payload is None:
            return
        emotes = await asyncio.to_thread(self._bttv.parse_channel_emotes, payload)
        await asyncio.to_thread(self._store.replace, EmoteProvider.BTTV, False, channel, emotes)

    async def set_bttv_global_emotes(self, payload: list | None) -> None:
        if payload is None:
            return
        emotes = await asyncio.to_thread(self._bttv.parse_global_emotes, payload)
        await asyncio.to_thread(self._store.replace, EmoteProvider.BTTV, True, None, emotes)

    async def set_channel_badges(self, channel: str, payload: dict | None) -> None:
        if payload is None:
            return
        table = await asyncio.to_thread(parse_badge_table, payload)
        self._store.replace_badges(channel, table)

    async def set_global_badges(self, payload: dict | None) -> None:
        if payload is None:
            return
        table = await asyncio.to_thread(parse_badge_table, payload)
        self._store.replace_badges(None, table)

    # --- queries ---

    def lookup_emotes(self, channel: str) -> list[Emote]:
        return self._store.lookup_emotes(channel)

    def lookup_channel_badge(self, channel: str, set_id: str, version: str) -> str | None:
        return self._store.lookup_channel_badge(channel, set_id, version)

    def lookup_global_badge(self, set_id: str, version: str) -> str | None:
        return self._store.lookup_global_badge(set_id, version)

    def lookup_moderator_badge(self, channel: str) -> str | None:
        return self._store.lookup_moderator_badge(channel)

    def resolve_badges(self, channel: str, badges_tag: str) -> list[tuple[str, str]]:
        """Resolve an IRC badges tag to (badge id, URL) pairs.

        Channel badges win over global ones. Moderators get the channel's
        FFZ moderator badge when it has one.
        """
        resolved: list[tuple[str, str]] = []
        for set_id, version in parse_badge_tag(badges_tag):
            url = None
            if set_id == "moderator":
                url = self.lookup_moderator_badge(channel)
            if url is None:
                url = self.lookup_channel_badge(channel, set_id, version)
            if url is None:
                url = self.lookup_global_badge(set_id, version)
            if url is None:
                logger.debug(f"No badge image for {set_id}/{version} in {channel}")
                continue
            resolved.append((f"{set_id}/{version}", url))
        return resolved

    def annotate(
        self, tag: str, text: str, removed_positions: Sequence[int] = ()
    ) -> list[MessageEmoteOccurrence]:
        """Twitch emote occurrences from a message's emotes tag."""
        return parse_emote_positions(tag, text, removed_positions, low_res=self.settings.prefer_low_res)

    def scan_third_party(self, text: str, channel: str) -> list[MessageEmoteOccurrence]:
        """FFZ and BTTV emote occurrences found in the message text."""
        return find_third_party_emotes(
            text,
            self._store,
            channel,
            providers=self._enabled_providers(),
            low_res=self.settings.prefer_low_res,
        )

    def annotate_message(
        self,
        tag: str,
        text: str,
        channel: str,
        removed_positions: Sequence[int] = (),
    ) -> list[MessageEmoteOccurrence]:
        """All occurrences for a message, Twitch emotes first."""
        return self.annotate(tag, text, removed_positions) + self.scan_third_party(text, channel)

    # --- channel lifecycle ---

    def should_fetch_backfill(self, channel: str) -> bool:
        return self._backfill.should_fetch(channel)

    def clear_backfill(self, channel: str) -> None:
        self._backfill.clear(channel)

    def leave_channel(self, channel: str) -> None:
        """Forget a channel's catalogs and allow a new backfill on rejoin."""
        self._store.clear_channel(channel)
        self._backfill.clear(channel)
