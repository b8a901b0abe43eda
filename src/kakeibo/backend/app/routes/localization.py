"""Expose the translation catalogue to the browser client."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from kakeibo.backend.app.localization import load_translations

blueprint = Blueprint("translations", __name__, url_prefix="/api/v1/translations")


@blueprint.get("/")
def get_default_translations():
    payload = load_translations(request.args.get("locale"))
    return jsonify(payload), 200


@blueprint.get("/<locale>")
def get_locale_translations(locale: str):
    return jsonify(load_translations(locale)), 200
