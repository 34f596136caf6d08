from __future__ import annotations

from typing import Optional

from .exceptions import NoPendingRequest, RequestAlreadyPending, UnknownRequest
from .types import PendingRequest


class RequestRegistry:
    """Single slot holding the one outstanding randomness request."""

    def __init__(self) -> None:
        self._pending: Optional[PendingRequest] = None

    @property
    def pending(self) -> Optional[PendingRequest]:
        return self._pending

    def register(self, pending: PendingRequest) -> None:
        if self._pending is not None:
            raise RequestAlreadyPending(self._pending.request_id)
        self._pending = pending

    def resolve(self, request_id: int) -> PendingRequest:
        """Clear and return the pending record if ``request_id`` matches it."""
        pending = self._pending
        if pending is None or pending.request_id != request_id:
            raise UnknownRequest(request_id)
        self._pending = None
        return pending

    def cancel(self) -> PendingRequest:
        pending = self._pending
        if pending is None:
            raise NoPendingRequest()
        self._pending = None
        return pending
