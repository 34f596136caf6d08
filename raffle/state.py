from __future__ import annotations

from .exceptions import InvalidTransition
from .types import RaffleState


class StateMachine:
    """OPEN <-> CALCULATING cycle plus the start time of the current round."""

    def __init__(self, interval: int, start_timestamp: float) -> None:
        if interval < 0:
            raise ValueError("interval must not be negative")
        self._interval = int(interval)
        self._state = RaffleState.OPEN
        self._last_timestamp = start_timestamp

    @property
    def state(self) -> RaffleState:
        return self._state

    @property
    def interval(self) -> int:
        return self._interval

    @property
    def last_timestamp(self) -> float:
        return self._last_timestamp

    def is_eligible(self, now: float, num_players: int, balance: int) -> bool:
        is_open = self._state == RaffleState.OPEN
        time_passed = (now - self._last_timestamp) >= self._interval
        has_players = num_players > 0
        has_balance = balance > 0
        return is_open and time_passed and has_players and has_balance

    def close(self) -> None:
        if self._state != RaffleState.OPEN:
            raise InvalidTransition(f"Cannot close raffle in state {self._state.name}")
        self._state = RaffleState.CALCULATING

    def reopen(self, timestamp: float) -> None:
        if self._state != RaffleState.CALCULATING:
            raise InvalidTransition(f"Cannot reopen raffle in state {self._state.name}")
        self._state = RaffleState.OPEN
        self._last_timestamp = timestamp
