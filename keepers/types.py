from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class UpkeepStatus:
    upkeep_needed: bool
    perform_data: str = "0x"


@dataclass(frozen=True)
class UpkeepResult:
    request_id: int
    round_number: int


@dataclass(frozen=True)
class QueuedRequest:
    request_id: int
    num_words: int


@dataclass(frozen=True)
class Fulfilment:
    request_id: int
    random_words: Sequence[int]
    winner: str
    beacon_round: Optional[int] = None
