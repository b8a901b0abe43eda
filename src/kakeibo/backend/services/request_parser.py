"""Helpers for normalising incoming JSON requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest

from kakeibo.backend.app.localization import normalise_locale


def resolve_locale(req: Request, payload: Mapping[str, Any] | None = None) -> str:
    """Pick the locale from the body, ``?locale=`` or ``Accept-Language``."""

    if payload is not None:
        locale = payload.get("locale")
        if isinstance(locale, str) and locale.strip():
            return normalise_locale(locale)

    locale_param = req.args.get("locale")
    if locale_param:
        return normalise_locale(locale_param)

    accept_language = req.headers.get("Accept-Language")
    if accept_language:
        primary = accept_language.split(",")[0].split(";")[0].strip()
        if primary:
            return normalise_locale(primary)

    return normalise_locale(None)


def parse_json_object(req: Request) -> dict[str, Any]:
    """Return the request body as a ``dict`` or raise :class:`BadRequest`."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract a calculation payload and fill in the resolved locale."""

    payload = parse_json_object(req)
    payload["locale"] = resolve_locale(req, payload)
    return payload


__all__ = ["parse_calculation_payload", "parse_json_object", "resolve_locale"]
