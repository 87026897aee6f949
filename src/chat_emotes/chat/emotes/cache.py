"""Bounded LRU cache of decoded animated emotes."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_DECODE_CACHE_SIZE = 128

ReleaseCallback = Callable[[str, Any], None]


class _KeyLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.users = 0


class DecodeCache:
    """LRU of decoded animation handles keyed by emote id.

    Handles leaving the cache (evicted, invalidated, replaced, cleared) are
    passed to ``on_release`` exactly once. Release runs outside the LRU
    bookkeeping lock, under a lock owned by the released key alone, so it
    never races a get/put of the same key and never stalls other keys.
    """

    def __init__(self, capacity: int = DEFAULT_DECODE_CACHE_SIZE, on_release: ReleaseCallback | None = None):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._on_release = on_release
        self._entries: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()
        # Created on first use, dropped when the last holder leaves
        self._key_locks: dict[str, _KeyLock] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    @contextmanager
    def _locked(self, key: str) -> Iterator[None]:
        with self._lock:
            key_lock = self._key_locks.get(key)
            if key_lock is None:
                key_lock = self._key_locks[key] = _KeyLock()
            key_lock.users += 1
        try:
            with key_lock.lock:
                yield
        finally:
            with self._lock:
                key_lock.users -= 1
                if key_lock.users == 0:
                    del self._key_locks[key]

    def get(self, key: str) -> Any | None:
        """Get a handle and mark it most recently used."""
        with self._locked(key):
            with self._lock:
                handle = self._entries.get(key)
                if handle is not None:
                    self._entries.move_to_end(key)
                return handle

    def put(self, key: str, handle: Any) -> None:
        """Store a handle, evicting least recently used entries over capacity."""
        released: list[tuple[str, Any]] = []
        with self._locked(key):
            with self._lock:
                previous = self._entries.pop(key, None)
                self._entries[key] = handle
                while len(self._entries) > self._capacity:
                    released.append(self._entries.popitem(last=False))
            if previous is not None and previous is not handle:
                self._release(key, previous)
        # Only one key lock is held at a time
        for evicted_key, evicted in released:
            with self._locked(evicted_key):
                self._release(evicted_key, evicted)

    def invalidate(self, key: str) -> bool:
        """Drop one entry. Returns True if it was cached."""
        with self._locked(key):
            with self._lock:
                handle = self._entries.pop(key, None)
            if handle is None:
                return False
            self._release(key, handle)
            return True

    def clear(self) -> None:
        """Release every cached handle."""
        with self._lock:
            entries = list(self._entries.items())
            self._entries.clear()
        for key, handle in entries:
            with self._locked(key):
                self._release(key, handle)

    def keys(self) -> list[str]:
        """Cached keys, least recently used first."""
        with self._lock:
            return list(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _release(self, key: str, handle: Any) -> None:
        if self._on_release is None:
            return
        try:
            self._on_release(key, handle)
        except Exception as e:
            logger.error(f"Failed to release decoded emote {key}: {e}")
