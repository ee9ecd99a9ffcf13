from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

AVAILABILITY_TTL_SECONDS = 600.0


@dataclass(frozen=True)
class AvailabilityCacheEntry:
    product_id: int
    is_available: bool
    synced_at: float


class AvailabilityCache:
    """In-memory availability per product id, trusted for ``ttl_seconds``.

    Entries are never evicted; a stale entry is simply ignored until the next
    write for the same id replaces it.
    """

    def __init__(
        self,
        ttl_seconds: float = AVAILABILITY_TTL_SECONDS,
        now: Callable[[], float] | None = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._now = now or time.monotonic
        self._entries: dict[int, AvailabilityCacheEntry] = {}

    def get(self, product_id: int) -> bool | None:
        entry = self._entries.get(product_id)
        if entry is None:
            return None
        if self._now() - entry.synced_at >= self.ttl_seconds:
            return None
        return entry.is_available

    def set(self, product_id: int, is_available: bool) -> AvailabilityCacheEntry:
        entry = AvailabilityCacheEntry(
            product_id=product_id,
            is_available=is_available,
            synced_at=self._now(),
        )
        self._entries[product_id] = entry
        return entry

    def entry(self, product_id: int) -> AvailabilityCacheEntry | None:
        return self._entries.get(product_id)

    def __len__(self) -> int:
        return len(self._entries)
