from __future__ import annotations

import asyncio
import json
import logging
import pathlib
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from .config import KeeperSettings
from .raffle_client import RaffleApiError
from .randomness import RandomnessSource
from .types import Fulfilment, QueuedRequest, UpkeepResult, UpkeepStatus

ROLES = ("upkeep", "oracle", "all")


class RaffleClientProtocol(Protocol):
    async def check_upkeep(self) -> UpkeepStatus:
        ...

    async def perform_upkeep(self) -> UpkeepResult:
        ...

    async def pending_requests(self) -> List[QueuedRequest]:
        ...

    async def fulfill(self, request_id: int, random_words: Sequence[int]) -> str:
        ...


@dataclass
class CycleResult:
    upkeep: Optional[UpkeepResult] = None
    fulfilments: List[Fulfilment] = field(default_factory=list)

    @property
    def did_work(self) -> bool:
        return self.upkeep is not None or bool(self.fulfilments)


class KeeperStateStore:
    """Remembers the last beacon round so one beacon value is never used twice."""

    def __init__(self, path: str) -> None:
        self._path = pathlib.Path(path)

    def load_last_beacon_round(self) -> Optional[int]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return None
        value = data.get("last_beacon_round")
        return int(value) if value is not None else None

    def save_last_beacon_round(self, beacon_round: int) -> None:
        payload = {"last_beacon_round": beacon_round}
        self._path.write_text(json.dumps(payload), encoding="utf-8")


class KeeperScheduler:
    def __init__(
        self,
        settings: KeeperSettings,
        source: RandomnessSource,
        client: RaffleClientProtocol,
        role: str = "all",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if role not in ROLES:
            raise ValueError(f"Unknown keeper role: {role}")
        self._settings = settings
        self._source = source
        self._client = client
        self._role = role
        self._state = KeeperStateStore(settings.state_file)
        self._last_beacon_round = self._state.load_last_beacon_round()
        self._logger = logger or logging.getLogger("keepers")

    async def run_forever(self) -> None:
        interval = self._settings.poll_interval_seconds
        self._logger.info("Keeper loop started; role=%s poll interval=%s", self._role, interval)
        while True:
            try:
                await self._run_cycle()
            except Exception as exc:
                self._logger.exception("Keeper iteration failed: %s", exc)
            await asyncio.sleep(interval)

    async def run_once(self) -> CycleResult:
        try:
            return await self._run_cycle()
        finally:
            await self._source.close()

    async def _run_cycle(self) -> CycleResult:
        result = CycleResult()
        if self._role in ("upkeep", "all"):
            result.upkeep = await self._attempt_upkeep()
        if self._role in ("oracle", "all"):
            result.fulfilments = await self._attempt_fulfilments()
        return result

    async def _attempt_upkeep(self) -> Optional[UpkeepResult]:
        status = await self._client.check_upkeep()
        if not status.upkeep_needed:
            self._logger.debug("Upkeep not needed; waiting.")
            return None

        # The raffle re-validates eligibility, so a stale read only costs a rejected call.
        try:
            upkeep = await self._client.perform_upkeep()
        except RaffleApiError as exc:
            if exc.code != "upkeep_not_needed":
                raise
            self._logger.info("Upkeep no longer needed; another caller closed the round.")
            return None
        self._logger.info(
            "Round %s closed; randomness request %s issued", upkeep.round_number, upkeep.request_id
        )
        return upkeep

    async def _attempt_fulfilments(self) -> List[Fulfilment]:
        fulfilments: List[Fulfilment] = []
        for queued in await self._client.pending_requests():
            drawn = await self._source.fetch_random_words(queued.request_id, queued.num_words)

            if drawn.beacon_round is not None and self._last_beacon_round is not None:
                if drawn.beacon_round <= self._last_beacon_round:
                    self._logger.info(
                        "Beacon round %s already used; request %s waits for the next one.",
                        drawn.beacon_round,
                        queued.request_id,
                    )
                    continue

            self._logger.info(
                "Fulfilling request %s with %s word(s)", queued.request_id, len(drawn.words)
            )
            winner = await self._client.fulfill(queued.request_id, drawn.words)
            self._logger.info("Request %s fulfilled; winner %s", queued.request_id, winner)

            if drawn.beacon_round is not None:
                self._last_beacon_round = drawn.beacon_round
                self._state.save_last_beacon_round(drawn.beacon_round)

            fulfilments.append(
                Fulfilment(
                    request_id=queued.request_id,
                    random_words=tuple(drawn.words),
                    winner=winner,
                    beacon_round=drawn.beacon_round,
                )
            )
        return fulfilments
