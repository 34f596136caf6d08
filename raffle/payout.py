from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Protocol, Set

from .exceptions import TransferFailed


class TransferPrimitive(Protocol):
    def transfer(self, recipient: str, amount: int) -> bool:
        ...


class CustodyAccount:
    """In-process custody of paid-out funds.

    ``transfer`` is all-or-nothing: either the recipient is credited the full
    amount and ``True`` is returned, or nothing changes and ``False`` is
    returned. Recipients can be marked as refusing payments.
    """

    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}
        self._refusing: Set[str] = set()
        self._lock = threading.Lock()

    def refuse(self, recipient: str) -> None:
        with self._lock:
            self._refusing.add(recipient.lower())

    def accept(self, recipient: str) -> None:
        with self._lock:
            self._refusing.discard(recipient.lower())

    def balance_of(self, address: str) -> int:
        with self._lock:
            return self._balances.get(address.lower(), 0)

    def transfer(self, recipient: str, amount: int) -> bool:
        if amount < 0:
            return False
        key = recipient.lower()
        with self._lock:
            if key in self._refusing:
                return False
            self._balances[key] = self._balances.get(key, 0) + amount
        return True


class PayoutEngine:
    def __init__(self, custody: TransferPrimitive, logger: Optional[logging.Logger] = None) -> None:
        self._custody = custody
        self._logger = logger or logging.getLogger("raffle.payout")

    def pay(self, recipient: str, amount: int) -> None:
        try:
            accepted = self._custody.transfer(recipient, amount)
        except Exception as exc:
            self._logger.exception("Transfer of %s wei to %s raised", amount, recipient)
            raise TransferFailed(recipient, amount, reason=str(exc)) from exc
        if not accepted:
            self._logger.error("Transfer of %s wei to %s was rejected", amount, recipient)
            raise TransferFailed(recipient, amount)
        self._logger.info("Transferred %s wei to %s", amount, recipient)
