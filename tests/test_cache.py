from __future__ import annotations

import threading

from forum_upvote.cache import ForumCache


def test_first_value_is_authoritative() -> None:
    cache = ForumCache()
    assert cache.get("1") is None
    assert "1" not in cache

    cache.set("1", True)
    cache.set("1", False)

    assert cache.get("1") is True
    assert "1" in cache
    assert len(cache) == 1


def test_concurrent_readers_only_see_complete_entries() -> None:
    cache = ForumCache()
    seen: list[bool | None] = []

    def writer() -> None:
        for index in range(2000):
            cache.set(str(index), index % 2 == 0)

    def reader() -> None:
        for index in range(2000):
            seen.append(cache.get(str(index)))

    threads = [threading.Thread(target=writer)] + [
        threading.Thread(target=reader) for _ in range(4)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert set(seen) <= {None, True, False}
    assert len(cache) == 2000
    assert cache.get("10") is True
    assert cache.get("11") is False


def test_reads_do_not_wait_for_a_writer() -> None:
    cache = ForumCache()
    cache.set("1", True)
    results: list[bool | None] = []

    with cache._write_lock:
        reader = threading.Thread(target=lambda: results.append(cache.get("1")))
        reader.start()
        reader.join(timeout=1.0)
        assert not reader.is_alive()

    assert results == [True]
