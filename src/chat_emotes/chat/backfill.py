"""At-most-once guard for recent-message backfill."""

import logging
import threading

logger = logging.getLogger(__name__)


class BackfillGuard:
    """Remembers which channels already had their chat history replayed."""

    def __init__(self) -> None:
        self._loaded: set[str] = set()
        self._lock = threading.Lock()

    def should_fetch(self, channel: str) -> bool:
        """Return True the first time a channel is asked for, False afterwards."""
        with self._lock:
            if channel in self._loaded:
                return False
            self._loaded.add(channel)
        logger.debug(f"Backfill claimed for {channel}")
        return True

    def clear(self, channel: str) -> None:
        """Allow another backfill for a channel (e.g. after leaving it)."""
        with self._lock:
            self._loaded.discard(channel)

    def reset(self) -> None:
        with self._lock:
            self._loaded.clear()

    def __contains__(self, channel: str) -> bool:
        with self._lock:
            return channel in self._loaded
