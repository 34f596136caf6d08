from __future__ import annotations

from typing import Any, Dict

from flask import Blueprint, jsonify
from web3 import Web3

from ..config import load_settings

bp = Blueprint("config", __name__)


def _get_raffle_metadata() -> Dict[str, Any]:
    raffle = load_settings().raffle
    return {
        "entrance_fee_wei": str(raffle.entrance_fee),
        "entrance_fee_ether": str(Web3.from_wei(raffle.entrance_fee, "ether")),
        "interval": raffle.interval,
        "request_timeout": raffle.request_timeout,
        "randomness": {
            "key_hash": raffle.key_hash,
            "subscription_id": raffle.subscription_id,
            "request_confirmations": raffle.request_confirmations,
            "callback_gas_limit": raffle.callback_gas_limit,
            "num_words": raffle.num_words,
        },
    }


@bp.get("/config")
def get_config():
    return jsonify(_get_raffle_metadata())
