from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..config import load_settings
from ..schemas import (
    EnterRequest,
    EnterResponse,
    PendingRequestResponse,
    PerformUpkeepResponse,
    RaffleStateResponse,
    UpkeepCheckResponse,
    WinnerResponse,
    checksum_address,
)
from . import get_runtime, token_matches

bp = Blueprint("raffle", __name__)


@bp.get("")
def get_raffle():
    snapshot = get_runtime().controller.snapshot()
    winner = snapshot.recent_winner
    pending = snapshot.pending_request
    response = RaffleStateResponse(
        state=snapshot.state.name,
        state_code=int(snapshot.state),
        round_number=snapshot.round_number,
        entrance_fee=str(snapshot.entrance_fee),
        interval=snapshot.interval,
        num_players=snapshot.num_players,
        balance=str(snapshot.balance),
        last_timestamp=snapshot.last_timestamp,
        upkeep_needed=snapshot.upkeep_needed,
        recent_winner=WinnerResponse(
            winner=winner.winner,
            prize=str(winner.prize),
            round_number=winner.round_number,
            picked_at=winner.picked_at,
        )
        if winner
        else None,
        pending_request=PendingRequestResponse(
            request_id=pending.request_id,
            issued_at=pending.issued_at,
            round_number=pending.round_number,
        )
        if pending
        else None,
    )
    return jsonify(response.model_dump())


@bp.post("/enter")
def enter_raffle():
    payload = request.get_json(force=True, silent=True) or {}
    data = EnterRequest(**payload)

    controller = get_runtime().controller
    controller.enter(data.player, data.value)
    response = EnterResponse(
        player=data.player,
        value=str(data.value),
        round_number=controller.round_number,
        num_players=controller.num_players,
        balance=str(controller.balance),
    )
    return jsonify(response.model_dump()), 201


@bp.get("/players/<int:index>")
def get_player(index: int):
    player = get_runtime().controller.get_player(index)
    return jsonify({"index": index, "player": player})


@bp.get("/rounds/<int:round_number>/entries")
def list_round_entries(round_number: int):
    journal = get_runtime().journal
    if journal is None:
        return jsonify([])
    return jsonify(journal.list_entries(round_number))


@bp.get("/winners")
def list_winners():
    journal = get_runtime().journal
    if journal is None:
        return jsonify([])
    limit = request.args.get("limit", type=int)
    return jsonify(journal.list_winners(limit))


@bp.get("/upkeep")
def check_upkeep():
    upkeep_needed, perform_data = get_runtime().controller.check_upkeep(b"")
    response = UpkeepCheckResponse(upkeep_needed=upkeep_needed, perform_data="0x" + perform_data.hex())
    return jsonify(response.model_dump())


@bp.post("/upkeep")
def perform_upkeep():
    if not token_matches("X-Keeper-Token", load_settings().keeper_api_key):
        return jsonify({"error": "unauthorized"}), 401

    controller = get_runtime().controller
    request_id = controller.perform_upkeep(b"")
    pending = controller.pending_request
    response = PerformUpkeepResponse(
        request_id=request_id,
        round_number=pending.round_number if pending else controller.round_number,
    )
    return jsonify(response.model_dump()), 202


accounts_bp = Blueprint("accounts", __name__)


@accounts_bp.get("/<address>")
def get_account(address: str):
    try:
        normalised = checksum_address(address)
    except ValueError as exc:
        return jsonify({"error": "invalid_address", "message": str(exc)}), 400
    balance = get_runtime().custody.balance_of(normalised)
    return jsonify({"address": normalised, "balance": str(balance)})
