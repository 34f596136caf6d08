from __future__ import annotations

import secrets

from .base import RandomnessSource, RandomWords


class LocalRandomnessSource(RandomnessSource):
    """Draws words from the operating system CSPRNG. Not verifiable."""

    async def fetch_random_words(self, request_id: int, num_words: int) -> RandomWords:
        return RandomWords(words=tuple(secrets.randbits(256) for _ in range(num_words)))
