from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from web3 import Web3

from .controller import RandomnessConsumer
from .exceptions import NonexistentRequest, TransferFailed, UnknownRequest
from .types import RandomnessRequest


@dataclass(frozen=True)
class QueuedRequest:
    request_id: int
    request: RandomnessRequest
    requested_at: float


def derive_random_words(request_id: int, num_words: int) -> List[int]:
    """keccak256(abi.encode(requestId, i)) for each word, like a VRF mock."""
    return [
        int.from_bytes(Web3.solidity_keccak(["uint256", "uint256"], [request_id, i]), "big")
        for i in range(num_words)
    ]


class RandomnessCoordinator:
    """Accepts randomness requests and later delivers words to their consumer.

    Request ids are sequential and start at 1. A request leaves the queue when
    its consumer accepts the words or rejects the id as unknown; it stays
    queued when the payout behind it fails so fulfilment can be retried.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock
        self._next_request_id = 1
        self._queue: Dict[int, QueuedRequest] = {}
        self._consumers: Dict[int, RandomnessConsumer] = {}
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger("raffle.coordinator")

    def request_random_words(self, request: RandomnessRequest, consumer: RandomnessConsumer) -> int:
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._queue[request_id] = QueuedRequest(
                request_id=request_id, request=request, requested_at=self._clock()
            )
            self._consumers[request_id] = consumer
        self._logger.info(
            "Queued randomness request %s (words=%s, confirmations=%s)",
            request_id,
            request.num_words,
            request.request_confirmations,
        )
        return request_id

    def pending_requests(self) -> List[QueuedRequest]:
        with self._lock:
            return sorted(self._queue.values(), key=lambda queued: queued.request_id)

    def fulfill(self, request_id: int, random_words: Optional[Sequence[int]] = None) -> List[int]:
        with self._lock:
            queued = self._queue.get(request_id)
            consumer = self._consumers.get(request_id)
        if queued is None or consumer is None:
            raise NonexistentRequest(request_id)

        if random_words is None:
            words = derive_random_words(request_id, queued.request.num_words)
        else:
            words = [int(word) for word in random_words]
        if len(words) != queued.request.num_words:
            raise ValueError(
                f"Request {request_id} expects {queued.request.num_words} words, got {len(words)}"
            )

        try:
            consumer.fulfill_random_words(request_id, words)
        except UnknownRequest:
            self._logger.warning("Consumer rejected request %s; dropping it", request_id)
            self._drop(request_id)
            raise
        except TransferFailed:
            self._logger.error("Payout for request %s failed; keeping it queued", request_id)
            raise

        self._drop(request_id)
        self._logger.info("Fulfilled randomness request %s", request_id)
        return words

    def _drop(self, request_id: int) -> None:
        with self._lock:
            self._queue.pop(request_id, None)
            self._consumers.pop(request_id, None)
