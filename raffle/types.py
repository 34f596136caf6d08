from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional, Tuple


class RaffleState(IntEnum):
    OPEN = 0
    CALCULATING = 1


@dataclass(frozen=True)
class RandomnessRequest:
    """Parameters sent to the randomness oracle with every request."""

    key_hash: str
    subscription_id: int
    request_confirmations: int = 3
    callback_gas_limit: int = 500000
    num_words: int = 1


@dataclass(frozen=True)
class PendingRequest:
    request_id: int
    issued_at: float
    round_number: int


@dataclass(frozen=True)
class WinnerRecord:
    winner: str
    picked_at: float
    prize: int
    round_number: int


@dataclass(frozen=True)
class RaffleSnapshot:
    state: RaffleState
    round_number: int
    entrance_fee: int
    interval: int
    players: Tuple[str, ...]
    balance: int
    last_timestamp: float
    recent_winner: Optional[WinnerRecord] = None
    pending_request: Optional[PendingRequest] = None
    upkeep_needed: bool = False

    @property
    def num_players(self) -> int:
        return len(self.players)


# --------------------------------------------------------------------------- #
# Events
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class RaffleEntered:
    player: str
    value: int
    round_number: int
    name: str = field(default="RaffleEnter", init=False)


@dataclass(frozen=True)
class RequestedRaffleWinner:
    request_id: int
    round_number: int
    name: str = field(default="RequestedRaffleWinner", init=False)


@dataclass(frozen=True)
class WinnerPicked:
    winner: str
    prize: int
    round_number: int
    picked_at: float
    name: str = field(default="WinnerPicked", init=False)


@dataclass(frozen=True)
class RequestCancelled:
    request_id: int
    round_number: int
    name: str = field(default="RequestCancelled", init=False)
