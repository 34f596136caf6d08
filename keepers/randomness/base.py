from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class RandomWords:
    """Random words for one request, plus the beacon round they came from."""

    words: Sequence[int]
    beacon_round: Optional[int] = None


class RandomnessSource(abc.ABC):
    """Abstract randomness provider."""

    @abc.abstractmethod
    async def fetch_random_words(self, request_id: int, num_words: int) -> RandomWords:
        """Return ``num_words`` uint256 values for ``request_id``.

        Implementations should raise `RuntimeError` or `ValueError` if the
        upstream source is unavailable or returns something unusable.
        """

    async def close(self) -> None:
        """Optional hook for sources that hold connections."""
        return None
