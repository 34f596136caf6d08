from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator
from web3 import Web3


def checksum_address(value: str) -> str:
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError("Player must be a valid 20-byte hex address.")
    return Web3.to_checksum_address(value)


class EnterRequest(BaseModel):
    player: str = Field(..., description="Address of the entrant.")
    value: int = Field(..., description="Attached value in wei.")

    @field_validator("player")
    @classmethod
    def validate_player(cls, value: str) -> str:
        return checksum_address(value)

    @field_validator("value")
    @classmethod
    def validate_value(cls, value: int) -> int:
        if value < 0:
            raise ValueError("Value must not be negative.")
        return value


class EnterResponse(BaseModel):
    player: str
    value: str
    round_number: int
    num_players: int
    balance: str


class UpkeepCheckResponse(BaseModel):
    upkeep_needed: bool
    perform_data: str = "0x"


class PerformUpkeepResponse(BaseModel):
    request_id: int
    round_number: int


class FulfillRequest(BaseModel):
    random_words: Optional[List[int]] = Field(
        None, description="Random words for the request; derived by the coordinator when omitted."
    )

    @field_validator("random_words")
    @classmethod
    def validate_words(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is None:
            return value
        if len(value) == 0:
            raise ValueError("random_words must not be empty.")
        for word in value:
            if word < 0 or word >= 2**256:
                raise ValueError("random words must be uint256 values.")
        return value


class WinnerResponse(BaseModel):
    winner: str
    prize: str
    round_number: int
    picked_at: float


class PendingRequestResponse(BaseModel):
    request_id: int
    issued_at: float
    round_number: int


class RaffleStateResponse(BaseModel):
    state: str
    state_code: int
    round_number: int
    entrance_fee: str
    interval: int
    num_players: int
    balance: str
    last_timestamp: float
    upkeep_needed: bool
    recent_winner: Optional[WinnerResponse] = None
    pending_request: Optional[PendingRequestResponse] = None


class QueuedRequestResponse(BaseModel):
    request_id: int
    num_words: int
    request_confirmations: int
    callback_gas_limit: int
    requested_at: float
