"""
Clock — the single source of time for caching, retry delays, and health stamps.

Tests swap in a virtual clock so TTL expiry and retry backoff run without sleeping.
"""
import asyncio
import time
from datetime import datetime, timezone


class Clock:
    def monotonic(self) -> float:
        """Seconds from an arbitrary, non-decreasing origin."""
        return time.monotonic()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


system_clock = Clock()
