"""Bounded memory of events a VEN already dispatched."""

from __future__ import annotations

from cachetools import TLRUCache

from openadr_overlay.core.types import Clock, EventKey, UnixSeconds, unix_now


def _expires_at(_key: EventKey, end_time: UnixSeconds, _now: UnixSeconds) -> UnixSeconds:
    return end_time


class RecentEvents:
    """Set of event keys, each forgotten once its event window has closed.

    Backed by a TLRUCache: an entry expires at the event's end time and the
    least recently used entry is evicted when maxsize is reached. Keys of
    events that have already ended are not remembered at all, since they
    cannot come back as active.
    """

    def __init__(self, maxsize: int = 4096, *, clock: Clock = unix_now) -> None:
        self._cache: TLRUCache[EventKey, UnixSeconds] = TLRUCache(
            maxsize=maxsize, ttu=_expires_at, timer=clock
        )

    def add(self, key: EventKey, end_time: UnixSeconds) -> None:
        self._cache[key] = end_time

    def __contains__(self, key: object) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)
