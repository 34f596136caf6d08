import unittest

from raffle.exceptions import (
    EmptyParticipantSet,
    IndexOutOfRange,
    InsufficientPayment,
    InvalidTransition,
    NoPendingRequest,
    RequestAlreadyPending,
    TransferFailed,
    UnknownRequest,
)
from raffle.ledger import EntryLedger
from raffle.payout import CustodyAccount, PayoutEngine
from raffle.registry import RequestRegistry
from raffle.selector import select_winner
from raffle.state import StateMachine
from raffle.types import PendingRequest, RaffleState

FEE = 10**16
P1 = "0x" + "1" * 40
P2 = "0x" + "2" * 40


class EntryLedgerTests(unittest.TestCase):
    def test_balance_tracks_fee_per_entry(self) -> None:
        ledger = EntryLedger(FEE)
        for count in range(1, 6):
            ledger.enter(P1 if count % 2 else P2, FEE)
            self.assertEqual(ledger.balance, FEE * len(ledger))
        self.assertEqual(len(ledger), 5)

    def test_same_player_can_hold_several_slots(self) -> None:
        ledger = EntryLedger(FEE)
        ledger.enter(P1, FEE)
        ledger.enter(P1, FEE)
        self.assertEqual(ledger.players, (P1, P1))

    def test_underpayment_is_rejected_without_changes(self) -> None:
        ledger = EntryLedger(FEE)
        ledger.enter(P1, FEE)
        with self.assertRaises(InsufficientPayment) as ctx:
            ledger.enter(P2, FEE - 1)
        self.assertEqual(ctx.exception.required, FEE)
        self.assertEqual(ledger.players, (P1,))
        self.assertEqual(ledger.balance, FEE)

    def test_surplus_is_pooled(self) -> None:
        ledger = EntryLedger(FEE)
        ledger.enter(P1, FEE + 5)
        self.assertEqual(ledger.balance, FEE + 5)

    def test_player_at_bounds(self) -> None:
        ledger = EntryLedger(FEE)
        ledger.enter(P1, FEE)
        self.assertEqual(ledger.player_at(0), P1)
        with self.assertRaises(IndexOutOfRange):
            ledger.player_at(1)
        with self.assertRaises(IndexOutOfRange):
            ledger.player_at(-1)

    def test_reset_clears_round(self) -> None:
        ledger = EntryLedger(FEE)
        ledger.enter(P1, FEE)
        ledger.reset()
        self.assertEqual(ledger.players, ())
        self.assertEqual(ledger.balance, 0)

    def test_fee_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            EntryLedger(0)


class StateMachineTests(unittest.TestCase):
    def test_eligibility_requires_every_condition(self) -> None:
        machine = StateMachine(interval=30, start_timestamp=1000.0)
        self.assertTrue(machine.is_eligible(1030.0, 1, FEE))
        self.assertFalse(machine.is_eligible(1029.0, 1, FEE))
        self.assertFalse(machine.is_eligible(5000.0, 0, FEE))
        self.assertFalse(machine.is_eligible(5000.0, 1, 0))
        machine.close()
        self.assertFalse(machine.is_eligible(5000.0, 1, FEE))

    def test_empty_round_is_never_eligible(self) -> None:
        machine = StateMachine(interval=30, start_timestamp=0.0)
        for now in (0.0, 31.0, 10**9):
            self.assertFalse(machine.is_eligible(now, 0, 0))

    def test_close_and_reopen_cycle(self) -> None:
        machine = StateMachine(interval=30, start_timestamp=0.0)
        machine.close()
        self.assertEqual(machine.state, RaffleState.CALCULATING)
        with self.assertRaises(InvalidTransition):
            machine.close()
        machine.reopen(99.0)
        self.assertEqual(machine.state, RaffleState.OPEN)
        self.assertEqual(machine.last_timestamp, 99.0)
        with self.assertRaises(InvalidTransition):
            machine.reopen(100.0)


class RequestRegistryTests(unittest.TestCase):
    def test_single_outstanding_request(self) -> None:
        registry = RequestRegistry()
        registry.register(PendingRequest(request_id=1, issued_at=0.0, round_number=1))
        with self.assertRaises(RequestAlreadyPending):
            registry.register(PendingRequest(request_id=2, issued_at=0.0, round_number=1))
        self.assertEqual(registry.pending.request_id, 1)

    def test_resolve_matches_only_pending_id(self) -> None:
        registry = RequestRegistry()
        with self.assertRaises(UnknownRequest):
            registry.resolve(1)
        registry.register(PendingRequest(request_id=7, issued_at=0.0, round_number=1))
        with self.assertRaises(UnknownRequest):
            registry.resolve(8)
        self.assertIsNotNone(registry.pending)

        resolved = registry.resolve(7)
        self.assertEqual(resolved.request_id, 7)
        self.assertIsNone(registry.pending)
        with self.assertRaises(UnknownRequest):
            registry.resolve(7)

    def test_cancel_requires_pending(self) -> None:
        registry = RequestRegistry()
        with self.assertRaises(NoPendingRequest):
            registry.cancel()


class SelectWinnerTests(unittest.TestCase):
    def test_index_is_value_modulo_player_count(self) -> None:
        players = ["a", "b", "c", "d"]
        self.assertEqual(select_winner(42, players), 2)
        self.assertEqual(select_winner(7, ["a"]), 0)
        self.assertEqual(select_winner(2**256 - 1, players), (2**256 - 1) % 4)

    def test_deterministic(self) -> None:
        players = [f"p{i}" for i in range(13)]
        for value in (0, 1, 12, 13, 987654321, 2**255):
            self.assertEqual(select_winner(value, players), select_winner(value, list(players)))

    def test_guards(self) -> None:
        with self.assertRaises(EmptyParticipantSet):
            select_winner(1, [])
        with self.assertRaises(ValueError):
            select_winner(-1, ["a"])


class PayoutEngineTests(unittest.TestCase):
    def test_successful_transfer_credits_recipient(self) -> None:
        custody = CustodyAccount()
        PayoutEngine(custody).pay("0x" + "a" * 40, FEE)
        self.assertEqual(custody.balance_of("0x" + "A" * 40), FEE)

    def test_refused_transfer_raises_and_moves_nothing(self) -> None:
        custody = CustodyAccount()
        custody.refuse(P1)
        with self.assertRaises(TransferFailed) as ctx:
            PayoutEngine(custody).pay(P1, FEE)
        self.assertEqual(ctx.exception.amount, FEE)
        self.assertEqual(custody.balance_of(P1), 0)

    def test_raising_transfer_is_reported_as_transfer_failed(self) -> None:
        class OfflineCustody:
            def transfer(self, recipient, amount):
                raise ConnectionError("timed out")

        with self.assertLogs("raffle.payout", level="ERROR"):
            with self.assertRaises(TransferFailed) as ctx:
                PayoutEngine(OfflineCustody()).pay(P1, FEE)
        self.assertEqual(ctx.exception.recipient, P1)
        self.assertIsInstance(ctx.exception.__cause__, ConnectionError)


if __name__ == "__main__":
    unittest.main()
