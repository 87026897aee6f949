"""Frame synchronization for animated emotes shown more than once."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from PySide6.QtCore import QObject, QTimer, Signal

logger = logging.getLogger(__name__)

FrameCallback = Callable[[], None]


@dataclass(frozen=True)
class FrameHandle:
    """Stable reference to one registration (slot index + generation)."""

    index: int
    generation: int


@dataclass
class _Slot:
    key: str
    generation: int
    on_advance: FrameCallback
    on_invalidate: FrameCallback | None


class FrameCallbackRegistry:
    """Fan-out of frame signals to every on-screen instance of an emote.

    Registrations live in an arena of slots. Freed slots are reused with a
    bumped generation, so a stale handle can never address a newer
    registration. Dispatch calls callbacks outside the lock and skips any
    slot that was unregistered in the meantime.
    """

    def __init__(self) -> None:
        self._slots: list[_Slot | None] = []
        self._generations: list[int] = []
        self._free: list[int] = []
        self._by_key: dict[str, set[int]] = {}
        self._lock = threading.Lock()

    def register(
        self, key: str, on_advance: FrameCallback, on_invalidate: FrameCallback | None = None
    ) -> FrameHandle:
        with self._lock:
            if self._free:
                index = self._free.pop()
                generation = self._generations[index] + 1
                self._generations[index] = generation
            else:
                index = len(self._slots)
                generation = 0
                self._slots.append(None)
                self._generations.append(generation)
            self._slots[index] = _Slot(key, generation, on_advance, on_invalidate)
            self._by_key.setdefault(key, set()).add(index)
            return FrameHandle(index, generation)

    def unregister(self, handle: FrameHandle) -> bool:
        """Remove a registration. Unknown or stale handles are ignored."""
        with self._lock:
            return self._unregister_locked(handle.index, handle.generation)

    def unregister_key(self, key: str) -> int:
        """Remove every registration of an emote. Returns how many were removed."""
        with self._lock:
            indices = list(self._by_key.get(key, ()))
            for index in indices:
                self._unregister_locked(index, self._generations[index])
            return len(indices)

    def _unregister_locked(self, index: int, generation: int) -> bool:
        if index >= len(self._slots):
            return False
        slot = self._slots[index]
        if slot is None or slot.generation != generation:
            return False
        self._slots[index] = None
        self._free.append(index)
        indices = self._by_key.get(slot.key)
        if indices is not None:
            indices.discard(index)
            if not indices:
                del self._by_key[slot.key]
        return True

    def count(self, key: str) -> int:
        with self._lock:
            return len(self._by_key.get(key, ()))

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._by_key)

    def advance(self, key: str) -> int:
        """Tell every instance of an emote to show its next frame."""
        return self._dispatch(self._snapshot(key), invalidate=False)

    def advance_all(self) -> int:
        return self._dispatch(self._snapshot(None), invalidate=False)

    def invalidate(self, key: str) -> int:
        """Tell every instance of an emote that its frames are gone."""
        return self._dispatch(self._snapshot(key), invalidate=True)

    def _snapshot(self, key: str | None) -> list[tuple[int, _Slot]]:
        with self._lock:
            if key is None:
                indices = [i for i, slot in enumerate(self._slots) if slot is not None]
            else:
                indices = sorted(self._by_key.get(key, ()))
            return [(i, self._slots[i]) for i in indices]

    def _is_live(self, index: int, slot: _Slot) -> bool:
        with self._lock:
            return self._slots[index] is slot

    def _dispatch(self, targets: list[tuple[int, _Slot]], invalidate: bool) -> int:
        delivered = 0
        for index, slot in targets:
            if not self._is_live(index, slot):
                continue
            callback = slot.on_invalidate if invalidate else slot.on_advance
            if callback is None:
                continue
            try:
                callback()
            except Exception as e:
                logger.error(f"Frame callback for {slot.key} failed: {e}")
                continue
            delivered += 1
        return delivered


class GifTimer(QObject):
    """Global animation timer (shared across chat widgets)."""

    tick = Signal(int)  # elapsed ms

    def __init__(
        self,
        registry: FrameCallbackRegistry,
        interval_ms: int = 100,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._registry = registry
        self._timer = QTimer(self)
        self._interval_ms = interval_ms
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_tick)
        self._start_time = time.monotonic()

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def is_active(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        if not self._timer.isActive():
            self._start_time = time.monotonic()
            self._timer.start()

    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()

    def _on_tick(self) -> None:
        self._registry.advance_all()
        elapsed_ms = int((time.monotonic() - self._start_time) * 1000)
        self.tick.emit(elapsed_ms)
