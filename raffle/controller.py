from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

from .exceptions import (
    NoPendingRequest,
    RequestAlreadyPending,
    RequestNotExpired,
    RoundNotOpen,
    UpkeepNotNeeded,
)
from .ledger import EntryLedger
from .payout import PayoutEngine
from .registry import RequestRegistry
from .selector import select_winner
from .state import StateMachine
from .types import (
    PendingRequest,
    RaffleEntered,
    RaffleSnapshot,
    RaffleState,
    RandomnessRequest,
    RequestCancelled,
    RequestedRaffleWinner,
    WinnerPicked,
    WinnerRecord,
)

EventListener = Callable[[Any], None]


class RandomnessConsumer(Protocol):
    def fulfill_random_words(self, request_id: int, random_words: Sequence[int]) -> None:
        ...


class RandomnessOracle(Protocol):
    def request_random_words(self, request: RandomnessRequest, consumer: RandomnessConsumer) -> int:
        ...


class RoundController:
    """Owns all round state and every transition between phases.

    Public operations are serialised by one re-entrant lock. A transfer or a
    listener that calls back into the controller while a resolution is in
    flight sees the CALCULATING phase and an empty registry, so the call is
    rejected instead of deadlocking.
    """

    def __init__(
        self,
        entrance_fee: int,
        interval: int,
        oracle: RandomnessOracle,
        payout: PayoutEngine,
        request_config: RandomnessRequest,
        request_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock
        self._ledger = EntryLedger(entrance_fee)
        self._state = StateMachine(interval, clock())
        self._registry = RequestRegistry()
        self._oracle = oracle
        self._payout = payout
        self._request_config = request_config
        self._request_timeout = request_timeout
        self._recent_winner: Optional[WinnerRecord] = None
        self._round_number = 1
        self._listeners: List[EventListener] = []
        self._lock = threading.RLock()
        self._logger = logger or logging.getLogger("raffle.controller")

    # ------------------------------------------------------------------ #
    # Events
    # ------------------------------------------------------------------ #

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # The transition is already committed; a broken observer must not undo it.
                self._logger.exception("Event listener failed for %s", event.name)

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def enter(self, player: str, value: int) -> None:
        with self._lock:
            if self._state.state != RaffleState.OPEN:
                raise RoundNotOpen()
            self._ledger.enter(player, value)
            self._logger.info(
                "Player %s entered round %s with %s wei", player, self._round_number, value
            )
            self._emit(RaffleEntered(player=player, value=value, round_number=self._round_number))

    def check_upkeep(self, check_data: bytes = b"") -> Tuple[bool, bytes]:
        with self._lock:
            upkeep_needed = self._state.is_eligible(
                self._clock(), len(self._ledger), self._ledger.balance
            )
            return upkeep_needed, b""

    def perform_upkeep(self, perform_data: bytes = b"") -> int:
        with self._lock:
            upkeep_needed, _ = self.check_upkeep(b"")
            if not upkeep_needed:
                raise UpkeepNotNeeded(
                    self._ledger.balance, len(self._ledger), int(self._state.state)
                )
            pending = self._registry.pending
            if pending is not None:
                raise RequestAlreadyPending(pending.request_id)

            started_at = self._state.last_timestamp
            self._state.close()
            try:
                request_id = self._oracle.request_random_words(self._request_config, self)
                self._registry.register(
                    PendingRequest(
                        request_id=request_id,
                        issued_at=self._clock(),
                        round_number=self._round_number,
                    )
                )
            except Exception:
                self._state.reopen(started_at)
                raise

            self._logger.info(
                "Round %s closed; randomness request %s issued", self._round_number, request_id
            )
            self._emit(RequestedRaffleWinner(request_id=request_id, round_number=self._round_number))
            return request_id

    def fulfill_random_words(self, request_id: int, random_words: Sequence[int]) -> None:
        if len(random_words) == 0:
            raise ValueError("random_words must not be empty")
        self.resolve(request_id, int(random_words[0]))

    def resolve(self, request_id: int, random_value: int) -> WinnerRecord:
        with self._lock:
            pending = self._registry.resolve(request_id)
            players = self._ledger.players
            prize = self._ledger.balance
            try:
                index = select_winner(random_value, players)
                winner = players[index]
                self._payout.pay(winner, prize)
            except Exception:
                # Put the request back so the same callback can be retried.
                self._registry.register(pending)
                self._logger.error(
                    "Resolution of request %s failed; request re-registered", request_id
                )
                raise

            now = self._clock()
            self._ledger.reset()
            self._state.reopen(now)
            record = WinnerRecord(
                winner=winner, picked_at=now, prize=prize, round_number=pending.round_number
            )
            self._recent_winner = record
            self._round_number += 1
            self._logger.info(
                "Round %s won by %s (index %s of %s) for %s wei",
                pending.round_number,
                winner,
                index,
                len(players),
                prize,
            )
            self._emit(
                WinnerPicked(
                    winner=winner,
                    prize=prize,
                    round_number=pending.round_number,
                    picked_at=now,
                )
            )
            return record

    def cancel_request(self) -> PendingRequest:
        """Drop a request the oracle never answered and reopen the round.

        Players and the round start time are kept, so the round is eligible
        again straight away and the keeper issues a fresh request.
        """
        with self._lock:
            pending = self._registry.pending
            if pending is None:
                raise NoPendingRequest()
            if self._request_timeout is not None:
                remaining = pending.issued_at + self._request_timeout - self._clock()
                if remaining > 0:
                    raise RequestNotExpired(pending.request_id, remaining)
            self._registry.cancel()
            self._state.reopen(self._state.last_timestamp)
            self._logger.warning(
                "Randomness request %s cancelled; round %s reopened",
                pending.request_id,
                pending.round_number,
            )
            self._emit(
                RequestCancelled(request_id=pending.request_id, round_number=pending.round_number)
            )
            return pending

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    @property
    def entrance_fee(self) -> int:
        return self._ledger.entrance_fee

    @property
    def interval(self) -> int:
        return self._state.interval

    @property
    def num_words(self) -> int:
        return self._request_config.num_words

    @property
    def request_confirmations(self) -> int:
        return self._request_config.request_confirmations

    @property
    def request_config(self) -> RandomnessRequest:
        return self._request_config

    @property
    def state(self) -> RaffleState:
        with self._lock:
            return self._state.state

    @property
    def num_players(self) -> int:
        with self._lock:
            return len(self._ledger)

    @property
    def balance(self) -> int:
        with self._lock:
            return self._ledger.balance

    @property
    def last_timestamp(self) -> float:
        with self._lock:
            return self._state.last_timestamp

    @property
    def recent_winner(self) -> Optional[WinnerRecord]:
        with self._lock:
            return self._recent_winner

    @property
    def round_number(self) -> int:
        with self._lock:
            return self._round_number

    @property
    def pending_request(self) -> Optional[PendingRequest]:
        with self._lock:
            return self._registry.pending

    def get_player(self, index: int) -> str:
        with self._lock:
            return self._ledger.player_at(index)

    def snapshot(self) -> RaffleSnapshot:
        with self._lock:
            upkeep_needed, _ = self.check_upkeep()
            return RaffleSnapshot(
                state=self._state.state,
                round_number=self._round_number,
                entrance_fee=self._ledger.entrance_fee,
                interval=self._state.interval,
                players=self._ledger.players,
                balance=self._ledger.balance,
                last_timestamp=self._state.last_timestamp,
                recent_winner=self._recent_winner,
                pending_request=self._registry.pending,
                upkeep_needed=upkeep_needed,
            )
