from __future__ import annotations

from typing import Optional

from flask import current_app, request

from ..runtime import RaffleRuntime


def get_runtime() -> RaffleRuntime:
    return current_app.extensions["raffle"]


def token_matches(header: str, expected: Optional[str]) -> bool:
    """An unset key disables the check for that role."""
    if not expected:
        return True
    return request.headers.get(header) == expected
