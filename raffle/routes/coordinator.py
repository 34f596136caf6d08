from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..config import load_settings
from ..schemas import FulfillRequest, QueuedRequestResponse, WinnerResponse
from . import get_runtime, token_matches

bp = Blueprint("coordinator", __name__)


@bp.get("/requests")
def list_pending_requests():
    queued = get_runtime().coordinator.pending_requests()
    response = [
        QueuedRequestResponse(
            request_id=item.request_id,
            num_words=item.request.num_words,
            request_confirmations=item.request.request_confirmations,
            callback_gas_limit=item.request.callback_gas_limit,
            requested_at=item.requested_at,
        ).model_dump()
        for item in queued
    ]
    return jsonify(response)


@bp.post("/requests/<int:request_id>/fulfill")
def fulfill_request(request_id: int):
    if not token_matches("X-Oracle-Token", load_settings().oracle_api_key):
        return jsonify({"error": "unauthorized"}), 401

    payload = request.get_json(force=True, silent=True) or {}
    data = FulfillRequest(**payload)

    runtime = get_runtime()
    words = runtime.coordinator.fulfill(request_id, data.random_words)
    winner = runtime.controller.recent_winner
    current_app.logger.info("Request %s fulfilled; winner=%s", request_id, winner.winner)
    return jsonify(
        {
            "request_id": request_id,
            "random_words": [str(word) for word in words],
            "winner": WinnerResponse(
                winner=winner.winner,
                prize=str(winner.prize),
                round_number=winner.round_number,
                picked_at=winner.picked_at,
            ).model_dump(),
        }
    )
