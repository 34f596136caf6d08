from __future__ import annotations

from typing import List, Tuple

from .exceptions import IndexOutOfRange, InsufficientPayment


class EntryLedger:
    """Players and pooled balance of the active round.

    Payments above the entrance fee are accepted and pooled in full.
    """

    def __init__(self, entrance_fee: int) -> None:
        if entrance_fee <= 0:
            raise ValueError("entrance_fee must be positive")
        self._entrance_fee = int(entrance_fee)
        self._players: List[str] = []
        self._balance = 0

    def __len__(self) -> int:
        return len(self._players)

    @property
    def entrance_fee(self) -> int:
        return self._entrance_fee

    @property
    def balance(self) -> int:
        return self._balance

    @property
    def players(self) -> Tuple[str, ...]:
        return tuple(self._players)

    def enter(self, player: str, value: int) -> None:
        if value < self._entrance_fee:
            raise InsufficientPayment(value, self._entrance_fee)
        self._players.append(player)
        self._balance += value

    def player_at(self, index: int) -> str:
        if index < 0 or index >= len(self._players):
            raise IndexOutOfRange(index, len(self._players))
        return self._players[index]

    def reset(self) -> None:
        self._players = []
        self._balance = 0
