"""Service-layer entry points used by the HTTP routes."""

from kakeibo.backend.app.services.calculation_service import (
    calculate_for_record,
    calculate_tax,
)

from .request_parser import parse_calculation_payload, parse_json_object, resolve_locale

__all__ = [
    "calculate_for_record",
    "calculate_tax",
    "parse_calculation_payload",
    "parse_json_object",
    "resolve_locale",
]
