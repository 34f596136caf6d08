from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from web3 import Web3

from .types import RandomnessRequest


@dataclass(frozen=True)
class FlaskSettings:
    secret_key: str = "raffle-dev-secret"
    debug: bool = True


@dataclass(frozen=True)
class RaffleSettings:
    entrance_fee: int
    interval: int = 30
    request_timeout: int = 3600
    key_hash: str = "0x" + "0" * 64
    subscription_id: int = 0
    callback_gas_limit: int = 500000
    request_confirmations: int = 3
    num_words: int = 1

    def randomness_request(self) -> RandomnessRequest:
        return RandomnessRequest(
            key_hash=self.key_hash,
            subscription_id=self.subscription_id,
            request_confirmations=self.request_confirmations,
            callback_gas_limit=self.callback_gas_limit,
            num_words=self.num_words,
        )


@dataclass(frozen=True)
class AppSettings:
    flask: FlaskSettings
    raffle: RaffleSettings
    database_url: str
    admin_api_key: Optional[str]
    keeper_api_key: Optional[str]
    oracle_api_key: Optional[str]


def _int_from_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    return int(value)


def _fee_from_env(key: str, default: str) -> int:
    value = os.getenv(key) or default
    fee = Web3.to_wei(Decimal(value), "ether")
    if fee <= 0:
        raise RuntimeError(f"{key} must be a positive amount of ether, got {value}")
    return int(fee)


@lru_cache(maxsize=1)
def load_settings(dotenv_path: Optional[str] = None) -> AppSettings:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        load_dotenv()

    flask_settings = FlaskSettings(
        secret_key=os.getenv("FLASK_SECRET_KEY", "raffle-dev-secret"),
        debug=os.getenv("FLASK_DEBUG", "1") == "1",
    )

    raffle_settings = RaffleSettings(
        entrance_fee=_fee_from_env("RAFFLE_ENTRANCE_FEE", "0.01"),
        interval=_int_from_env("RAFFLE_INTERVAL", 30),
        request_timeout=_int_from_env("RAFFLE_REQUEST_TIMEOUT", 3600),
        key_hash=os.getenv("RAFFLE_KEY_HASH", "0x" + "0" * 64),
        subscription_id=_int_from_env("RAFFLE_SUBSCRIPTION_ID", 0),
        callback_gas_limit=_int_from_env("RAFFLE_CALLBACK_GAS_LIMIT", 500000),
        request_confirmations=_int_from_env("RAFFLE_REQUEST_CONFIRMATIONS", 3),
        num_words=_int_from_env("RAFFLE_NUM_WORDS", 1),
    )
    if raffle_settings.num_words < 1:
        raise RuntimeError("RAFFLE_NUM_WORDS must be at least 1")

    return AppSettings(
        flask=flask_settings,
        raffle=raffle_settings,
        database_url=os.getenv("DATABASE_URL", "sqlite:///raffle.db"),
        admin_api_key=os.getenv("ADMIN_API_KEY"),
        keeper_api_key=os.getenv("KEEPER_API_KEY"),
        oracle_api_key=os.getenv("ORACLE_API_KEY"),
    )
