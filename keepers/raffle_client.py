from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

import requests

from .config import KeeperSettings
from .types import QueuedRequest, UpkeepResult, UpkeepStatus


class RaffleApiError(RuntimeError):
    def __init__(self, status_code: int, code: str, message: str) -> None:
        self.status_code = status_code
        self.code = code
        super().__init__(f"{code} ({status_code}): {message}")


class RaffleClient:
    """Wrapper around the raffle HTTP API used by the keeper and the oracle."""

    def __init__(self, settings: KeeperSettings, session: Optional[requests.Session] = None) -> None:
        self._settings = settings
        self._session = session or requests.Session()
        self._base_url = settings.api_url.rstrip("/")

    async def check_upkeep(self) -> UpkeepStatus:
        payload = await asyncio.to_thread(self._request, "GET", "/raffle/upkeep")
        return UpkeepStatus(
            upkeep_needed=bool(payload["upkeep_needed"]),
            perform_data=payload.get("perform_data", "0x"),
        )

    async def perform_upkeep(self) -> UpkeepResult:
        payload = await asyncio.to_thread(
            self._request,
            "POST",
            "/raffle/upkeep",
            headers=self._token_header("X-Keeper-Token", self._settings.keeper_token),
        )
        return UpkeepResult(
            request_id=int(payload["request_id"]), round_number=int(payload["round_number"])
        )

    async def pending_requests(self) -> List[QueuedRequest]:
        payload = await asyncio.to_thread(self._request, "GET", "/coordinator/requests")
        return [
            QueuedRequest(request_id=int(item["request_id"]), num_words=int(item["num_words"]))
            for item in payload
        ]

    async def fulfill(self, request_id: int, random_words: Sequence[int]) -> str:
        payload = await asyncio.to_thread(
            self._request,
            "POST",
            f"/coordinator/requests/{int(request_id)}/fulfill",
            json={"random_words": [int(word) for word in random_words]},
            headers=self._token_header("X-Oracle-Token", self._settings.oracle_token),
        )
        return payload["winner"]["winner"]

    async def close(self) -> None:
        self._session.close()

    @staticmethod
    def _token_header(header: str, token: Optional[str]) -> Dict[str, str]:
        return {header: token} if token else {}

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        resp = self._session.request(
            method,
            f"{self._base_url}{path}",
            timeout=self._settings.http_timeout_seconds,
            **kwargs,
        )
        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            raise RaffleApiError(
                resp.status_code,
                str(body.get("error", "http_error")),
                str(body.get("message", resp.text)),
            )
        return resp.json()
