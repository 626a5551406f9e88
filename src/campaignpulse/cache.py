from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .models import CampaignRecord, WorkflowRecord

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5 * 60


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    data: T
    fetched_at: float


class TtlCache(Generic[T]):
    """Per-location cache of fully fetched listings.

    Entries are only ever replaced wholesale. Reads and writes are plain dict
    operations on the event loop thread, so no locking is needed.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, *, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}

    def get(self, key: str, *, force_refresh: bool = False) -> T | None:
        if force_refresh:
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self.ttl_seconds:
            return None
        return entry.data

    def set(self, key: str, data: T) -> None:
        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())

    def invalidate(self, key: str | None = None) -> None:
        if key:
            self._entries.pop(key, None)
            return
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class CampaignCache(TtlCache[list[CampaignRecord]]):
    pass


class WorkflowCache(TtlCache[list[WorkflowRecord]]):
    pass
