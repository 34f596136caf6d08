from __future__ import annotations

from typing import Sequence

from .exceptions import EmptyParticipantSet


def select_winner(random_value: int, players: Sequence[str]) -> int:
    """Map a random value onto an index of ``players``.

    Same inputs always give the same index, so a draw can be replayed from the
    oracle's published value.
    """
    if not players:
        raise EmptyParticipantSet()
    if random_value < 0:
        raise ValueError("random_value must be unsigned")
    return int(random_value) % len(players)
