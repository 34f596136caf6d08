from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


def _bool_from_env(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _int_from_env(value: Optional[str], default: int) -> int:
    if value is None or value == "":
        return default
    return int(value)


def _require_env(key: str) -> str:
    value = os.getenv(key)
    if value is None or value == "":
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


@dataclass(frozen=True)
class RandomnessSourceSettings:
    url: str = ""
    round_key: str = "round"
    value_key: str = "randomness"
    timeout_seconds: int = 10


@dataclass(frozen=True)
class KeeperSettings:
    api_url: str
    keeper_token: Optional[str] = None
    oracle_token: Optional[str] = None
    poll_interval_seconds: int = 30
    run_once: bool = False
    state_file: str = "keeper_state.json"
    http_timeout_seconds: int = 10
    randomness: RandomnessSourceSettings = RandomnessSourceSettings()

    def copy(self, **updates) -> "KeeperSettings":
        return replace(self, **updates)


def load_from_environment() -> KeeperSettings:
    randomness = RandomnessSourceSettings(
        url=os.getenv("RANDOMNESS__URL", ""),
        round_key=os.getenv("RANDOMNESS__ROUND_KEY", "round"),
        value_key=os.getenv("RANDOMNESS__VALUE_KEY", "randomness"),
        timeout_seconds=_int_from_env(os.getenv("RANDOMNESS__TIMEOUT_SECONDS"), 10),
    )

    return KeeperSettings(
        api_url=_require_env("RAFFLE_API_URL").rstrip("/"),
        keeper_token=os.getenv("KEEPER_API_KEY") or None,
        oracle_token=os.getenv("ORACLE_API_KEY") or None,
        poll_interval_seconds=_int_from_env(os.getenv("POLL_INTERVAL_SECONDS"), 30),
        run_once=_bool_from_env(os.getenv("RUN_ONCE"), False),
        state_file=os.getenv("STATE_FILE", "keeper_state.json"),
        http_timeout_seconds=_int_from_env(os.getenv("HTTP_TIMEOUT_SECONDS"), 10),
        randomness=randomness,
    )


@lru_cache(maxsize=1)
def load_config(dotenv_path: Optional[str] = None) -> KeeperSettings:
    if dotenv_path:
        load_dotenv(dotenv_path)
    else:
        default_path = pathlib.Path(".env")
        if default_path.exists():
            load_dotenv(default_path)
    return load_from_environment()
