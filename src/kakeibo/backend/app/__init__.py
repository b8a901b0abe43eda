"""Application factory for the Kakeibo backend."""

from __future__ import annotations

import logging
import os
import secrets
import sqlite3
from http import HTTPStatus
from warnings import warn

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import BadRequest

from .http import problem_response, translated_problem
from .models import AuthUser
from .routes import register_routes
from .routes.config import get_configuration_metadata
from .services.auth_service import AuthError, AuthEvent, init_auth
from .services.salary_service import init_salary_repository
from .services.storage import RecordNotFoundError
from .services.todo_service import init_todo_repository

logger = logging.getLogger(__name__)


def _parse_allowed_origins(raw: str | None) -> set[str]:
    """Convert an environment variable into a normalised set of origins."""

    if not raw:
        return set()

    return {origin.strip() for origin in raw.split(",") if origin.strip()}


def _resolve_secret_key() -> str:
    secret = os.getenv("KAKEIBO_SECRET_KEY", "").strip()
    if secret:
        return secret

    warn(
        "KAKEIBO_SECRET_KEY is not set; using a random key, so sessions will not "
        "survive a restart.",
        stacklevel=2,
    )
    return secrets.token_hex(32)


def _log_auth_change(event: AuthEvent, user: AuthUser | None) -> None:
    if user is not None:
        logger.info("Auth state changed: %s (%s via %s)", event, user.email, user.provider)
    else:
        logger.info("Auth state changed: %s", event)


def create_app() -> Flask:
    """Create and configure the Flask application instance."""

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=_resolve_secret_key(),
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
    )

    allowed_origins = _parse_allowed_origins(os.getenv("KAKEIBO_ALLOWED_ORIGINS"))
    if not allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=1,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(allowed_origins)}},
        supports_credentials=True,
        methods=["GET", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type"],
    )

    auth = init_auth(app)
    auth.on_auth_state_change(_log_auth_change)

    init_salary_repository(app)
    init_todo_repository(app)

    register_routes(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        payload = {"status": "ok", **get_configuration_metadata()}
        return jsonify(payload)

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response(
            "bad_request", status=HTTPStatus.BAD_REQUEST, message=message
        ).to_response()

    @app.errorhandler(ValueError)
    def handle_value_error(error: ValueError):
        """Surface domain validation errors to clients."""

        return problem_response(
            "validation_error", status=HTTPStatus.BAD_REQUEST, message=str(error)
        ).to_response()

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(error: RecordNotFoundError):
        logger.info("Record lookup failed: %s", error)
        return translated_problem(
            "not_found", status=HTTPStatus.NOT_FOUND, message_key="errors.not_found"
        ).to_response()

    @app.errorhandler(AuthError)
    def handle_auth_error(error: AuthError):
        logger.info("Rejected sign-in: %s", error)
        return problem_response(
            "auth_error", status=HTTPStatus.BAD_REQUEST, message=str(error)
        ).to_response()

    @app.errorhandler(sqlite3.Error)
    def handle_storage_error(error: sqlite3.Error):
        logger.error(
            "Storage operation failed for %s %s", request.method, request.path, exc_info=error
        )
        return translated_problem(
            "storage_error",
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            message_key="errors.save_failed",
        ).to_response()

    return app
