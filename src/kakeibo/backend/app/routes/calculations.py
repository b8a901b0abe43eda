"""REST endpoint for anonymous tax estimates."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify, request

from kakeibo.backend.services import calculate_tax, parse_calculation_payload

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/calculations")
def create_calculation() -> tuple[Any, int]:
    """Estimate income and residence tax for the submitted salary inputs."""

    payload = parse_calculation_payload(request)
    return jsonify(calculate_tax(payload)), 200
