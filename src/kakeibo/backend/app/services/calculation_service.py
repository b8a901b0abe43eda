"""Orchestrate request validation, unit conversion, and tax calculations.

The estimator in :mod:`.calculators.income_tax` works on yen amounts only. This
service is the boundary in front of it: it validates payloads, converts
man-yen input, fills in the social insurance estimate when the caller leaves
it out, and shapes the localized breakdown returned to clients.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from contextlib import contextmanager
from decimal import Decimal
from time import perf_counter
from typing import Any

from pydantic import ValidationError

from kakeibo.backend.app.localization import Translator, get_translator
from kakeibo.backend.app.models import (
    AmountUnit,
    CalculationRequest,
    CalculationResponse,
    SalaryRecord,
    format_validation_error,
)
from kakeibo.backend.config.tax_schedule import TaxSchedule, load_tax_schedule

from .calculators import (
    TaxCalculationResult,
    calculate_tax as calculate_tax_breakdown,
    format_percentage,
    format_yen,
    round_currency,
    social_insurance_deduction,
)

_LOGGER = logging.getLogger(__name__)


def _profiling_enabled() -> bool:
    """Return ``True`` when calculation profiling should be captured."""

    flag = os.getenv("KAKEIBO_PROFILE_CALCULATIONS", "")
    return flag.strip().lower() in {"1", "true", "yes", "on"}


@contextmanager
def _profile_section(name: str, store: dict[str, float] | None):
    """Capture the duration of a named section when profiling is enabled."""

    if store is None:
        yield
        return

    start = perf_counter()
    try:
        yield
    finally:
        store[name] = perf_counter() - start


def to_base_units(amount: float, unit: AmountUnit, schedule: TaxSchedule) -> float:
    """Convert a display amount to yen (``man_yen`` is 10,000 yen).

    Raises ``ValueError`` when the converted amount no longer fits a float.
    """

    if unit == "yen":
        return float(amount)
    factor = schedule.meta.display_unit_factor
    converted = float(Decimal(repr(float(amount))) * factor)
    if not math.isfinite(converted):
        raise ValueError(f"Amount {amount} {unit} is too large to convert to yen")
    return converted


def _build_steps(
    income: float,
    tax_credit: float,
    result: TaxCalculationResult,
    schedule: TaxSchedule,
    translator: Translator,
) -> list[dict[str, Any]]:
    rate_label = format_percentage(result.tax_rate)
    residence_label = format_percentage(schedule.residence_tax.rate)
    yen = format_yen

    return [
        {
            "id": "employment_income",
            "label": translator("steps.employment_income"),
            "expression": (
                f"{yen(income)} - {yen(result.employment_deduction)}"
                f" = {yen(result.employment_income)}"
            ),
            "result": round_currency(result.employment_income),
        },
        {
            "id": "taxable_income",
            "label": translator("steps.taxable_income"),
            "expression": (
                f"{yen(result.employment_income)} - {yen(result.total_deduction)}"
                f" = {yen(result.taxable_income)}"
            ),
            "result": round_currency(result.taxable_income),
        },
        {
            "id": "tax_amount",
            "label": translator("steps.tax_amount"),
            "expression": (
                f"{yen(result.taxable_income)} × {rate_label}"
                f" = {yen(result.tax_amount)}"
            ),
            "result": round_currency(result.tax_amount),
        },
        {
            "id": "final_tax",
            "label": translator("steps.final_tax"),
            "expression": (
                f"{yen(result.tax_amount)} - {yen(tax_credit)}"
                f" = {yen(result.final_tax)}"
            ),
            "result": round_currency(result.final_tax),
        },
        {
            "id": "residence_tax",
            "label": translator("steps.residence_tax"),
            "expression": (
                f"{yen(result.taxable_income)} × {residence_label}"
                f" = {yen(result.residence_tax)}"
            ),
            "result": round_currency(result.residence_tax),
        },
        {
            "id": "total_tax",
            "label": translator("steps.total_tax"),
            "expression": (
                f"{yen(result.final_tax)} + {yen(result.residence_tax)}"
                f" = {yen(result.total_tax)}"
            ),
            "result": round_currency(result.total_tax),
        },
    ]


def build_calculation(
    income: float,
    social_insurance: float | None,
    other_deduction: float,
    tax_credit: float,
    *,
    locale: str | None = None,
    schedule: TaxSchedule | None = None,
) -> dict[str, Any]:
    """Calculate taxes for yen inputs and return the JSON-ready response."""

    schedule = schedule if schedule is not None else load_tax_schedule()
    translator = get_translator(locale)

    timings: dict[str, float] | None = {} if _profiling_enabled() else None
    overall_start = perf_counter() if timings is not None else None

    estimated = social_insurance is None
    if social_insurance is None:
        social_insurance = social_insurance_deduction(income, schedule)

    with _profile_section("pipeline", timings):
        result = calculate_tax_breakdown(
            income,
            social_insurance,
            other_deduction,
            tax_credit,
            schedule=schedule,
        )

    with _profile_section("steps", timings):
        steps = _build_steps(income, tax_credit, result, schedule, translator)

    if timings is not None and overall_start is not None:
        timings["total"] = perf_counter() - overall_start
        _LOGGER.debug(
            "calculate_tax timings (ms): %s",
            {name: round(duration * 1000, 3) for name, duration in timings.items()},
        )

    response_model = CalculationResponse.model_validate(
        {
            "inputs": {
                "income": round_currency(income),
                "social_insurance_deduction": round_currency(social_insurance),
                "social_insurance_estimated": estimated,
                "other_deduction": round_currency(other_deduction),
                "tax_credit": round_currency(tax_credit),
            },
            "result": {
                key: round_currency(value)
                for key, value in result.as_dict().items()
            },
            "steps": steps,
            "meta": {
                "locale": translator.locale,
                "schedule_version": schedule.version,
                "currency": schedule.meta.currency,
            },
        }
    )
    return response_model.model_dump(mode="json")


def calculate_tax(payload: Mapping[str, Any] | CalculationRequest) -> dict[str, Any]:
    """Validate ``payload`` and compute the tax breakdown."""

    if isinstance(payload, CalculationRequest):
        request_model = payload
    else:
        if not isinstance(payload, Mapping):
            raise ValueError("Payload must be a mapping")
        try:
            request_model = CalculationRequest.model_validate(dict(payload))
        except ValidationError as exc:
            raise ValueError(format_validation_error(exc, context="calculation")) from exc

    schedule = load_tax_schedule()
    unit = request_model.unit

    social_insurance = request_model.social_insurance_deduction
    if social_insurance is not None:
        social_insurance = to_base_units(social_insurance, unit, schedule)

    return build_calculation(
        to_base_units(request_model.income, unit, schedule),
        social_insurance,
        to_base_units(request_model.other_deduction, unit, schedule),
        to_base_units(request_model.tax_credit, unit, schedule),
        locale=request_model.locale,
        schedule=schedule,
    )


def calculate_for_record(record: SalaryRecord, *, locale: str | None = None) -> dict[str, Any]:
    """Compute the breakdown for a stored salary record."""

    return build_calculation(
        record.income,
        record.social_insurance_deduction,
        record.other_deduction,
        record.tax_credit,
        locale=locale,
    )


__all__ = ["build_calculation", "calculate_for_record", "calculate_tax", "to_base_units"]
