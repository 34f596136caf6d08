import asyncio
import json
import tempfile
import unittest
from pathlib import Path

from keepers.config import KeeperSettings
from keepers.raffle_client import RaffleApiError
from keepers.randomness.base import RandomnessSource, RandomWords
from keepers.scheduler import KeeperScheduler
from keepers.types import QueuedRequest, UpkeepResult, UpkeepStatus


class FakeSource(RandomnessSource):
    def __init__(self, words=(7,), beacon_round=None) -> None:
        self._words = tuple(words)
        self._beacon_round = beacon_round
        self.closed = False
        self.calls = []

    async def fetch_random_words(self, request_id: int, num_words: int) -> RandomWords:
        self.calls.append((request_id, num_words))
        return RandomWords(words=self._words[:num_words], beacon_round=self._beacon_round)

    async def close(self) -> None:
        self.closed = True


class FakeClient:
    def __init__(self, upkeep_needed: bool = False, queued=None, winner: str = "0xwinner") -> None:
        self.upkeep_needed = upkeep_needed
        self.queued = list(queued or [])
        self.winner = winner
        self.performed = 0
        self.fulfilled = []

    async def check_upkeep(self) -> UpkeepStatus:
        return UpkeepStatus(upkeep_needed=self.upkeep_needed)

    async def perform_upkeep(self) -> UpkeepResult:
        self.performed += 1
        return UpkeepResult(request_id=self.performed, round_number=1)

    async def pending_requests(self):
        return list(self.queued)

    async def fulfill(self, request_id: int, random_words):
        self.fulfilled.append((request_id, tuple(random_words)))
        self.queued = [item for item in self.queued if item.request_id != request_id]
        return self.winner


class KeeperSchedulerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmpdir = tempfile.TemporaryDirectory()
        self.state_path = Path(self._tmpdir.name) / "state.json"

    def tearDown(self) -> None:
        self._tmpdir.cleanup()

    def _make_settings(self) -> KeeperSettings:
        return KeeperSettings(
            api_url="http://localhost:5000",
            keeper_token="keeper",
            oracle_token="oracle",
            poll_interval_seconds=5,
            run_once=True,
            state_file=str(self.state_path),
        )

    def test_skips_upkeep_when_not_needed(self) -> None:
        source = FakeSource()
        client = FakeClient(upkeep_needed=False)
        scheduler = KeeperScheduler(self._make_settings(), source, client)

        result = asyncio.run(scheduler.run_once())

        self.assertIsNone(result.upkeep)
        self.assertEqual(result.fulfilments, [])
        self.assertFalse(result.did_work)
        self.assertEqual(client.performed, 0)
        self.assertTrue(source.closed)

    def test_performs_upkeep_when_needed(self) -> None:
        client = FakeClient(upkeep_needed=True)
        scheduler = KeeperScheduler(self._make_settings(), FakeSource(), client, role="upkeep")

        result = asyncio.run(scheduler.run_once())

        self.assertEqual(result.upkeep.request_id, 1)
        self.assertEqual(client.performed, 1)

    def test_oracle_role_does_not_trigger_upkeep(self) -> None:
        client = FakeClient(upkeep_needed=True, queued=[QueuedRequest(request_id=3, num_words=1)])
        scheduler = KeeperScheduler(self._make_settings(), FakeSource(words=(42,)), client, role="oracle")

        result = asyncio.run(scheduler.run_once())

        self.assertIsNone(result.upkeep)
        self.assertEqual(client.performed, 0)
        self.assertEqual(client.fulfilled, [(3, (42,))])
        self.assertEqual(result.fulfilments[0].winner, "0xwinner")

    def test_fulfils_pending_requests_and_persists_beacon_round(self) -> None:
        client = FakeClient(queued=[QueuedRequest(request_id=1, num_words=2)])
        source = FakeSource(words=(11, 12), beacon_round=900)
        scheduler = KeeperScheduler(self._make_settings(), source, client)

        result = asyncio.run(scheduler.run_once())

        self.assertEqual(source.calls, [(1, 2)])
        self.assertEqual(client.fulfilled, [(1, (11, 12))])
        self.assertEqual(result.fulfilments[0].beacon_round, 900)
        persisted = json.loads(self.state_path.read_text(encoding="utf-8"))
        self.assertEqual(persisted["last_beacon_round"], 900)

    def test_does_not_reuse_beacon_round(self) -> None:
        self.state_path.write_text(json.dumps({"last_beacon_round": 900}), encoding="utf-8")
        client = FakeClient(queued=[QueuedRequest(request_id=2, num_words=1)])
        scheduler = KeeperScheduler(
            self._make_settings(), FakeSource(beacon_round=900), client, role="oracle"
        )

        result = asyncio.run(scheduler.run_once())

        self.assertEqual(result.fulfilments, [])
        self.assertEqual(client.fulfilled, [])

    def test_stale_upkeep_rejection_does_not_skip_fulfilments(self) -> None:
        class RacedClient(FakeClient):
            async def perform_upkeep(self) -> UpkeepResult:
                raise RaffleApiError(409, "upkeep_not_needed", "Upkeep not needed")

        client = RacedClient(upkeep_needed=True, queued=[QueuedRequest(request_id=4, num_words=1)])
        scheduler = KeeperScheduler(self._make_settings(), FakeSource(words=(9,)), client)

        result = asyncio.run(scheduler.run_once())

        self.assertIsNone(result.upkeep)
        self.assertEqual(client.fulfilled, [(4, (9,))])

    def test_other_upkeep_errors_propagate(self) -> None:
        class UnauthorizedClient(FakeClient):
            async def perform_upkeep(self) -> UpkeepResult:
                raise RaffleApiError(401, "unauthorized", "Invalid keeper token")

        scheduler = KeeperScheduler(
            self._make_settings(), FakeSource(), UnauthorizedClient(upkeep_needed=True)
        )

        with self.assertRaises(RaffleApiError):
            asyncio.run(scheduler.run_once())

    def test_rejects_unknown_role(self) -> None:
        with self.assertRaises(ValueError):
            KeeperScheduler(self._make_settings(), FakeSource(), FakeClient(), role="miner")


if __name__ == "__main__":
    unittest.main()
