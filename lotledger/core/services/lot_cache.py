"""
Read-through cache of available lots.

Entries are keyed by (business_id, item_id) and expire after a TTL.
Committers invalidate an item's entry after every successful commit;
nothing ever writes a speculative value into the cache.

Readers take a generation token before reading storage and hand it back
to put(). An invalidate() in between bumps the generation, so a snapshot
read before a commit can never be stored after it.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from lotledger.core.services.fifo_aggregator import AvailableLots

CacheKey = tuple[str, str]


@dataclass
class _Entry:
    value: AvailableLots
    expires_at: float


class LotCache:
    """TTL cache for AvailableLots. A ttl of 0 disables caching."""

    def __init__(
        self,
        ttl: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[CacheKey, _Entry] = {}
        self._generations: dict[CacheKey, int] = {}

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, business_id: str, item_id: str) -> AvailableLots | None:
        key = (business_id, item_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return _copy(entry.value)

    def generation(self, business_id: str, item_id: str) -> int:
        """Token to pass to put() for a value read from storage after this call."""
        return self._generations.get((business_id, item_id), 0)

    def put(self, value: AvailableLots, generation: int) -> bool:
        """
        Store value unless the item was invalidated since generation was taken.

        Returns True when the value was stored.
        """
        if not self.enabled:
            return False
        key = (value.business_id, value.item_id)
        if self._generations.get(key, 0) != generation:
            return False
        self._entries[key] = _Entry(
            value=_copy(value),
            expires_at=self._clock() + self._ttl,
        )
        return True

    def invalidate(self, business_id: str, item_id: str) -> None:
        key = (business_id, item_id)
        self._entries.pop(key, None)
        self._generations[key] = self._generations.get(key, 0) + 1

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _copy(value: AvailableLots) -> AvailableLots:
    """Callers may mutate the lots they get back; the cache keeps its own."""
    return AvailableLots(
        business_id=value.business_id,
        item_id=value.item_id,
        lots=[lot.model_copy() for lot in value.lots],
    )
