"""Per-provider emote and badge catalogs.

Every (provider, scope, channel) key owns one read-only snapshot. A refresh
builds a new mapping off to the side and swaps it in with a single
assignment, so readers never take a lock and never see a half-built table.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from ..models import BadgeTable, CatalogKey, Emote, EmoteProvider

logger = logging.getLogger(__name__)

_EMPTY: Mapping[str, Emote] = MappingProxyType({})

# Order in which catalogs are merged for lookup_emotes()
_LOOKUP_ORDER: tuple[tuple[EmoteProvider, bool], ...] = (
    (EmoteProvider.TWITCH, True),
    (EmoteProvider.TWITCH, False),
    (EmoteProvider.FFZ, True),
    (EmoteProvider.FFZ, False),
    (EmoteProvider.BTTV, True),
    (EmoteProvider.BTTV, False),
)


def catalog_key(provider: EmoteProvider, is_global: bool, channel: str | None = None) -> CatalogKey:
    """Key of a snapshot. Global and Twitch catalogs are not tied to a chat channel."""
    if is_global or provider == EmoteProvider.TWITCH:
        channel = None
    return CatalogKey(provider, is_global, channel)


class CatalogStore:
    """Atomically replaceable emote and badge tables."""

    def __init__(self) -> None:
        self._emotes: dict[CatalogKey, Mapping[str, Emote]] = {}
        self._channel_badges: dict[str, Mapping] = {}
        self._global_badges: Mapping = MappingProxyType({})
        self._moderator_badges: dict[str, str] = {}
        self._key_locks: dict[object, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: object) -> threading.Lock:
        with self._locks_guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.Lock()
            return lock

    # --- writers ---

    def replace(
        self,
        provider: EmoteProvider,
        is_global: bool,
        channel: str | None,
        emotes: Iterable[Emote],
    ) -> None:
        """Install a new snapshot for one key; the last duplicate code wins."""
        key = catalog_key(provider, is_global, channel)
        with self._lock_for(key):
            table: dict[str, Emote] = {}
            for emote in emotes:
                table[emote.code] = emote
            self._emotes[key] = MappingProxyType(table)
        logger.debug(f"Replaced {key.provider.value} catalog ({_scope_label(key)}): {len(table)} emotes")

    def replace_badges(self, channel: str | None, table: BadgeTable) -> None:
        """Install a new global (channel=None) or channel badge table."""
        with self._lock_for(("badges", channel)):
            snapshot = MappingProxyType(
                {
                    set_id: dataclasses.replace(badge_set, versions=dict(badge_set.versions))
                    for set_id, badge_set in table.items()
                }
            )
            if channel is None:
                self._global_badges = snapshot
            else:
                self._channel_badges[channel] = snapshot
        logger.debug(f"Replaced {channel or 'global'} badges: {len(snapshot)} sets")

    def set_moderator_badge(self, channel: str, url: str | None) -> None:
        if url:
            self._moderator_badges[channel] = url
        else:
            self._moderator_badges.pop(channel, None)

    def clear_channel(self, channel: str) -> None:
        """Forget every channel-scoped table of a channel."""
        for provider in (EmoteProvider.FFZ, EmoteProvider.BTTV):
            key = catalog_key(provider, False, channel)
            with self._lock_for(key):
                self._emotes.pop(key, None)
        with self._lock_for(("badges", channel)):
            self._channel_badges.pop(channel, None)
        self._moderator_badges.pop(channel, None)
        with self._locks_guard:
            for key in [k for k in self._key_locks if _is_channel_key(k, channel)]:
                del self._key_locks[key]

    # --- readers ---

    def emote_map(
        self, provider: EmoteProvider, is_global: bool, channel: str | None = None
    ) -> Mapping[str, Emote]:
        """Current snapshot for one key (empty if never loaded)."""
        return self._emotes.get(catalog_key(provider, is_global, channel), _EMPTY)

    def lookup_emotes(self, channel: str) -> list[Emote]:
        """All emotes usable in a channel, sorted by code."""
        result: list[Emote] = []
        for provider, is_global in _LOOKUP_ORDER:
            result.extend(self.emote_map(provider, is_global, channel).values())
        return sorted(result, key=lambda emote: emote.code)

    def grouped_emotes(self, channel: str) -> dict[str, list[Emote]]:
        """Emotes of a channel grouped under their scope titles."""
        groups: dict[str, list[Emote]] = {}
        for emote in self.lookup_emotes(channel):
            groups.setdefault(emote.scope.title, []).append(emote)
        return groups

    def lookup_channel_badge(self, channel: str, set_id: str, version: str) -> str | None:
        return _badge_url(self._channel_badges.get(channel), set_id, version)

    def lookup_global_badge(self, set_id: str, version: str) -> str | None:
        return _badge_url(self._global_badges, set_id, version)

    def lookup_badge(self, channel: str | None, set_id: str, version: str) -> str | None:
        """Badge URL from a channel's table, or the global table when channel is None."""
        if channel is None:
            return self.lookup_global_badge(set_id, version)
        return self.lookup_channel_badge(channel, set_id, version)

    def lookup_moderator_badge(self, channel: str) -> str | None:
        return self._moderator_badges.get(channel)


def _badge_url(table: Mapping | None, set_id: str, version: str) -> str | None:
    if not table:
        return None
    badge_set = table.get(set_id)
    if badge_set is None:
        return None
    badge = badge_set.versions.get(version)
    return badge.high_res_url if badge else None


def _is_channel_key(key: object, channel: str) -> bool:
    if isinstance(key, CatalogKey):
        return key.channel == channel
    return key == ("badges", channel)


def _scope_label(key: CatalogKey) -> str:
    if key.is_global:
        return "global"
    return key.channel or "user"
