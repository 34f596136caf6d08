from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Mapping, Tuple

import requests
from web3 import Web3

from .base import RandomnessSource, RandomWords


@dataclass(frozen=True)
class HttpBeaconSourceConfig:
    """Describes how to read the upstream beacon JSON payload."""

    url: str
    round_key: str = "round"
    value_key: str = "randomness"
    timeout_seconds: int = 10


class HttpBeaconSource(RandomnessSource):
    """Derive request words from a public randomness beacon (drand style).

    word_i = keccak256(abi.encodePacked(beacon, request_id, i))
    """

    def __init__(self, config: HttpBeaconSourceConfig) -> None:
        self._config = config

    async def fetch_random_words(self, request_id: int, num_words: int) -> RandomWords:
        payload = await asyncio.to_thread(
            self._get_json, self._config.url, self._config.timeout_seconds
        )
        beacon_round, beacon = self._parse_payload(payload)
        words = tuple(
            int.from_bytes(
                Web3.solidity_keccak(["bytes", "uint256", "uint256"], [beacon, request_id, i]),
                "big",
            )
            for i in range(num_words)
        )
        return RandomWords(words=words, beacon_round=beacon_round)

    @staticmethod
    def _get_json(url: str, timeout_seconds: int) -> Mapping[str, Any]:
        resp = requests.get(url, timeout=timeout_seconds)
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, Mapping):
            raise ValueError("Beacon returned non-object payload")
        return data

    def _parse_payload(self, payload: Mapping[str, Any]) -> Tuple[int, bytes]:
        cfg = self._config
        try:
            beacon_round = int(payload[cfg.round_key])
        except KeyError as exc:
            raise ValueError(f"Missing beacon round field: {cfg.round_key}") from exc

        try:
            raw_value = payload[cfg.value_key]
        except KeyError as exc:
            raise ValueError(f"Missing beacon value field: {cfg.value_key}") from exc

        if not isinstance(raw_value, str):
            raise ValueError("Beacon value must be a hex string")
        try:
            beacon = bytes.fromhex(raw_value[2:] if raw_value.startswith("0x") else raw_value)
        except ValueError as exc:
            raise ValueError("Beacon value is not valid hex") from exc
        if len(beacon) == 0:
            raise ValueError("Beacon value empty")
        return beacon_round, beacon
