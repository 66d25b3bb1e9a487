"""In-memory forum classification cache."""

from __future__ import annotations

import threading


class ForumCache:
    """Map channel ids to whether the channel is a forum.

    Entries are never invalidated: a channel's type is treated as fixed for
    the lifetime of the process.

    Reads take no lock, so any number of readers proceed concurrently. A
    single ``dict`` lookup or assignment is atomic under the interpreter
    lock, so a reader sees either no entry or the whole ``(id, bool)`` pair.
    Writers serialize on ``_write_lock`` so that the first stored value wins.
    """

    def __init__(self) -> None:
        self._entries: dict[str, bool] = {}
        self._write_lock = threading.Lock()

    def get(self, channel_id: str) -> bool | None:
        return self._entries.get(channel_id)

    def set(self, channel_id: str, is_forum: bool) -> None:
        with self._write_lock:
            if channel_id not in self._entries:
                self._entries[channel_id] = bool(is_forum)

    def __contains__(self, channel_id: object) -> bool:
        return channel_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
