"""
User-agent selection from a fixed pool.

The random source is injectable so tests can seed it.
"""

import random
from typing import Optional, Sequence

UA_POOL = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:124.0) Gecko/20100101 Firefox/124.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36 Edg/122.0.0.0",
)


class UserAgentProvider:
    """Picks a user agent per browser context."""

    def __init__(self, pool: Sequence[str] = UA_POOL, rng: Optional[random.Random] = None):
        if not pool:
            raise ValueError("user agent pool cannot be empty")
        self._pool = tuple(pool)
        self._rng = rng or random.Random()

    @classmethod
    def seeded(cls, seed: int, pool: Sequence[str] = UA_POOL) -> "UserAgentProvider":
        return cls(pool=pool, rng=random.Random(seed))

    @property
    def pool(self) -> tuple:
        return self._pool

    def next(self) -> str:
        return self._rng.choice(self._pool)
