"""Sign-in state endpoints."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from kakeibo.backend.app.models import SignInRequest, format_validation_error
from kakeibo.backend.app.services.auth_service import get_auth_session
from kakeibo.backend.services import parse_json_object

blueprint = Blueprint("auth", __name__, url_prefix="/api/v1/auth")


@blueprint.get("/user")
def get_current_user() -> tuple[Any, int]:
    user = get_auth_session().current_user()
    return jsonify({"user": user.as_dict() if user else None}), HTTPStatus.OK


@blueprint.post("/sign-in")
def sign_in() -> tuple[Any, int]:
    """Record the identity returned by the OAuth provider."""

    payload = parse_json_object(request)
    try:
        sign_in_request = SignInRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, context="sign-in")) from exc

    user = get_auth_session().sign_in_with_oauth(
        sign_in_request.provider,
        user_id=sign_in_request.user_id,
        email=sign_in_request.email,
    )
    return jsonify({"user": user.as_dict()}), HTTPStatus.OK


@blueprint.post("/sign-out")
def sign_out() -> tuple[Any, int]:
    get_auth_session().sign_out()
    return jsonify({"user": None}), HTTPStatus.OK
