from .controller import RandomnessOracle, RoundController
from .exceptions import RaffleError
from .payout import CustodyAccount, PayoutEngine
from .types import RaffleState, RandomnessRequest, WinnerRecord

__all__ = [
    "CustodyAccount",
    "PayoutEngine",
    "RaffleError",
    "RaffleState",
    "RandomnessOracle",
    "RandomnessRequest",
    "RoundController",
    "WinnerRecord",
]
