"""
Raffle exceptions.

Every rejected operation raises a subclass of ``RaffleError``. The HTTP layer
maps ``code`` and ``status`` straight into the JSON error payload.
"""
from __future__ import annotations

from typing import Optional


class RaffleError(Exception):
    """Base class for all raffle errors."""

    code = "raffle_error"
    status = 400


# ============ Entry ============

class InsufficientPayment(RaffleError):
    """The attached value is below the entrance fee."""

    code = "insufficient_payment"

    def __init__(self, paid: int, required: int) -> None:
        self.paid = paid
        self.required = required
        super().__init__(f"Entrance fee is {required} wei, got {paid}")


class RoundNotOpen(RaffleError):
    """Entries are only accepted while the raffle is open."""

    code = "round_not_open"
    status = 409

    def __init__(self) -> None:
        super().__init__("Raffle is not open")


class IndexOutOfRange(RaffleError):
    code = "index_out_of_range"
    status = 404

    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"Player index {index} out of range (players={size})")


# ============ Upkeep / state ============

class UpkeepNotNeeded(RaffleError):
    """perform_upkeep was called while the eligibility predicate is false."""

    code = "upkeep_not_needed"
    status = 409

    def __init__(self, balance: int, num_players: int, state: int) -> None:
        self.balance = balance
        self.num_players = num_players
        self.state = state
        super().__init__(
            f"Upkeep not needed (balance={balance}, players={num_players}, state={state})"
        )


class InvalidTransition(RaffleError):
    """Illegal state transition. Reaching a caller means a controller bug."""

    code = "invalid_transition"
    status = 500


# ============ Randomness requests ============

class RequestAlreadyPending(RaffleError):
    code = "request_already_pending"
    status = 409

    def __init__(self, request_id: int) -> None:
        self.request_id = request_id
        super().__init__(f"Randomness request {request_id} is still pending")


class UnknownRequest(RaffleError):
    """The callback does not match the outstanding request."""

    code = "unknown_request"
    status = 404

    def __init__(self, request_id: int) -> None:
        self.request_id = request_id
        super().__init__(f"Request {request_id} is not the pending request")


class NoPendingRequest(RaffleError):
    code = "no_pending_request"
    status = 409

    def __init__(self) -> None:
        super().__init__("No randomness request is pending")


class RequestNotExpired(RaffleError):
    code = "request_not_expired"
    status = 409

    def __init__(self, request_id: int, remaining: float) -> None:
        self.request_id = request_id
        self.remaining = remaining
        super().__init__(
            f"Request {request_id} can be cancelled in {remaining:.0f} seconds"
        )


class NonexistentRequest(RaffleError):
    """The coordinator never issued this request id, or already consumed it."""

    code = "nonexistent_request"
    status = 404

    def __init__(self, request_id: int) -> None:
        self.request_id = request_id
        super().__init__(f"nonexistent request {request_id}")


# ============ Winner selection / payout ============

class EmptyParticipantSet(RaffleError):
    code = "empty_participant_set"
    status = 409

    def __init__(self) -> None:
        super().__init__("Cannot select a winner without players")


class TransferFailed(RaffleError):
    code = "transfer_failed"
    status = 502

    def __init__(self, recipient: str, amount: int, reason: Optional[str] = None) -> None:
        self.recipient = recipient
        self.amount = amount
        message = f"Transfer of {amount} wei to {recipient} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
