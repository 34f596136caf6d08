from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from .config import RaffleSettings
from .controller import RoundController
from .coordinator import RandomnessCoordinator
from .payout import CustodyAccount, PayoutEngine
from .services.journal import RaffleJournal


@dataclass
class RaffleRuntime:
    controller: RoundController
    coordinator: RandomnessCoordinator
    custody: CustodyAccount
    journal: Optional[RaffleJournal] = None


def build_runtime(
    settings: RaffleSettings,
    clock: Callable[[], float] = time.time,
    journal: Optional[RaffleJournal] = None,
) -> RaffleRuntime:
    coordinator = RandomnessCoordinator(clock=clock)
    custody = CustodyAccount()
    controller = RoundController(
        entrance_fee=settings.entrance_fee,
        interval=settings.interval,
        oracle=coordinator,
        payout=PayoutEngine(custody),
        request_config=settings.randomness_request(),
        request_timeout=settings.request_timeout,
        clock=clock,
    )
    if journal is not None:
        controller.subscribe(journal)
    return RaffleRuntime(
        controller=controller, coordinator=coordinator, custody=custody, journal=journal
    )
