from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ..config import load_settings
from ..schemas import PendingRequestResponse
from . import get_runtime, token_matches

bp = Blueprint("admin", __name__)


@bp.before_request
def verify_admin():
    if not token_matches("X-Admin-Token", load_settings().admin_api_key):
        return jsonify({"error": "unauthorized"}), 401
    return None


@bp.get("/requests")
def list_requests():
    journal = get_runtime().journal
    if journal is None:
        return jsonify([])
    limit = request.args.get("limit", type=int)
    return jsonify(journal.list_requests(limit))


@bp.post("/requests/cancel")
def cancel_request():
    pending = get_runtime().controller.cancel_request()
    current_app.logger.warning(
        "Operator cancelled randomness request %s for round %s",
        pending.request_id,
        pending.round_number,
    )
    response = PendingRequestResponse(
        request_id=pending.request_id,
        issued_at=pending.issued_at,
        round_number=pending.round_number,
    )
    return jsonify({"cancelled": response.model_dump()})
