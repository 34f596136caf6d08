from __future__ import annotations

import time
from typing import Callable, Optional

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .config import load_settings
from .db import engine
from .exceptions import RaffleError
from .models import Base
from .routes.admin import bp as admin_bp
from .routes.config import bp as config_bp
from .routes.coordinator import bp as coordinator_bp
from .routes.health import bp as health_bp
from .routes.raffle import accounts_bp
from .routes.raffle import bp as raffle_bp
from .runtime import build_runtime
from .services.journal import RaffleJournal


def create_app(clock: Optional[Callable[[], float]] = None) -> Flask:
    settings = load_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.flask.secret_key
    Base.metadata.create_all(engine)

    runtime = build_runtime(settings.raffle, clock=clock or time.time, journal=RaffleJournal())
    app.extensions["raffle"] = runtime

    app.register_blueprint(health_bp)
    app.register_blueprint(config_bp)
    app.register_blueprint(raffle_bp, url_prefix="/raffle")
    app.register_blueprint(accounts_bp, url_prefix="/accounts")
    app.register_blueprint(coordinator_bp, url_prefix="/coordinator")
    app.register_blueprint(admin_bp, url_prefix="/admin/api")

    @app.errorhandler(RaffleError)
    def handle_raffle_error(exc: RaffleError):
        app.logger.info("Rejected: %s", exc)
        return jsonify({"error": exc.code, "message": str(exc)}), exc.status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return jsonify({"error": "invalid_request", "message": str(exc)}), 400

    @app.errorhandler(ValueError)
    def handle_value_error(exc: ValueError):
        return jsonify({"error": "invalid_request", "message": str(exc)}), 400

    @app.errorhandler(Exception)
    def handle_error(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify({"error": str(exc)}), 500

    return app


if __name__ == "__main__":
    create_app().run(debug=load_settings().flask.debug)
