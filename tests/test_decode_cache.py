"""Tests for the decoded animated emote LRU."""

import threading

import pytest

from chat_emotes.chat.emotes.cache import DEFAULT_DECODE_CACHE_SIZE, DecodeCache


class _Recorder:
    def __init__(self):
        self.released: list[tuple[str, object]] = []
        self._lock = threading.Lock()

    def __call__(self, key, handle):
        with self._lock:
            self.released.append((key, handle))


def test_default_capacity():
    assert DecodeCache().capacity == DEFAULT_DECODE_CACHE_SIZE == 128


def test_invalid_capacity():
    with pytest.raises(ValueError):
        DecodeCache(capacity=0)


def test_get_miss_returns_none():
    assert DecodeCache().get("nope") is None


def test_put_and_get():
    cache = DecodeCache()
    handle = object()
    cache.put("a", handle)
    assert cache.get("a") is handle
    assert "a" in cache
    assert len(cache) == 1


def test_overflow_evicts_least_recently_used_once():
    recorder = _Recorder()
    cache = DecodeCache(capacity=128, on_release=recorder)
    handles = {f"k{i}": object() for i in range(129)}
    for key, handle in handles.items():
        cache.put(key, handle)
    assert recorder.released == [("k0", handles["k0"])]
    assert len(cache) == 128
    assert "k0" not in cache


def test_get_refreshes_recency():
    recorder = _Recorder()
    cache = DecodeCache(capacity=2, on_release=recorder)
    cache.put("a", "A")
    cache.put("b", "B")
    cache.get("a")
    cache.put("c", "C")
    assert recorder.released == [("b", "B")]
    assert cache.keys() == ["a", "c"]


def test_replacing_a_key_releases_old_handle():
    recorder = _Recorder()
    cache = DecodeCache(on_release=recorder)
    cache.put("a", "old")
    cache.put("a", "new")
    assert recorder.released == [("a", "old")]
    assert cache.get("a") == "new"


def test_putting_same_handle_again_does_not_release():
    recorder = _Recorder()
    cache = DecodeCache(on_release=recorder)
    handle = object()
    cache.put("a", handle)
    cache.put("a", handle)
    assert recorder.released == []


def test_invalidate():
    recorder = _Recorder()
    cache = DecodeCache(on_release=recorder)
    cache.put("a", "A")
    assert cache.invalidate("a") is True
    assert cache.invalidate("a") is False
    assert recorder.released == [("a", "A")]
    assert cache.get("a") is None


def test_clear_releases_everything():
    recorder = _Recorder()
    cache = DecodeCache(on_release=recorder)
    cache.put("a", "A")
    cache.put("b", "B")
    cache.clear()
    assert sorted(recorder.released) == [("a", "A"), ("b", "B")]
    assert len(cache) == 0


def test_release_errors_are_not_raised():
    def failing(key, handle):
        raise RuntimeError("boom")

    cache = DecodeCache(capacity=1, on_release=failing)
    cache.put("a", "A")
    cache.put("b", "B")
    assert cache.get("b") == "B"


def test_release_can_use_cache_for_same_key():
    cache = DecodeCache(capacity=1)
    seen = []

    def on_release(key, handle):
        seen.append(cache.get(key))

    cache._on_release = on_release
    cache.put("a", "A")
    cache.invalidate("a")
    assert seen == [None]


def test_concurrent_puts_release_each_evicted_handle_once():
    recorder = _Recorder()
    cache = DecodeCache(capacity=16, on_release=recorder)

    def worker(prefix):
        for i in range(200):
            cache.put(f"{prefix}-{i}", (prefix, i))
            cache.get(f"{prefix}-{i // 2}")

    threads = [threading.Thread(target=worker, args=(p,)) for p in "abcd"]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(cache) == 16
    released_keys = [key for key, _ in recorder.released]
    assert len(released_keys) == len(set(released_keys)) == 800 - 16
    assert not set(released_keys) & set(cache.keys())


def test_release_does_not_block_other_keys():
    entered = threading.Event()
    proceed = threading.Event()

    def slow_release(key, handle):
        entered.set()
        proceed.wait(5)

    cache = DecodeCache(on_release=slow_release)
    others = [f"k{i}" for i in range(64)]
    cache.put("a", "A")
    for key in others:
        cache.put(key, key.upper())

    releaser = threading.Thread(target=cache.invalidate, args=("a",))
    releaser.start()
    try:
        assert entered.wait(5)
        seen = []
        reader = threading.Thread(target=lambda: seen.extend(cache.get(key) for key in others))
        reader.start()
        reader.join(1)
        assert not reader.is_alive()
        assert seen == [key.upper() for key in others]
    finally:
        proceed.set()
        releaser.join()


def test_key_locks_are_dropped_after_use():
    cache = DecodeCache(capacity=2)
    for key in "abcd":
        cache.put(key, key)
        cache.get(key)
    cache.invalidate("d")
    cache.clear()
    assert cache._key_locks == {}
