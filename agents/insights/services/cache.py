"""
TTL cache for chain reads.

Expired entries are treated as misses but left in place; the next successful
fetch for the same key overwrites them.
"""
from dataclasses import dataclass
from typing import Any
from shared.utils.clock import Clock, system_clock


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    expires_at: float


def cache_key(operation: str, *params: Any) -> str:
    return ":".join([operation, *("" if p is None else str(p) for p in params)])


class TTLCache:
    def __init__(self, ttl_seconds: float, clock: Clock = system_clock):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def lookup(self, key: str) -> tuple[bool, Any]:
        """Return (hit, value) so cached falsy values are distinguishable from misses."""
        entry = self._entries.get(key)
        if entry is None or self.clock.monotonic() >= entry.expires_at:
            return False, None
        return True, entry.value

    def set(self, key: str, value: Any) -> CacheEntry:
        entry = CacheEntry(key=key, value=value, expires_at=self.clock.monotonic() + self.ttl_seconds)
        self._entries[key] = entry
        return entry

    def __len__(self) -> int:
        return len(self._entries)
