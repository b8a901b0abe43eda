"""Expose tax schedule metadata consumed by the browser client.

The Salary form uses these endpoints to show bracket tables and the man-yen
display factor without duplicating the schedule in JavaScript.
"""

from __future__ import annotations

from typing import Any

from flask import Blueprint, jsonify

from kakeibo.backend.app.localization import BASE_LOCALE, available_locales
from kakeibo.backend.config.tax_schedule import TaxSchedule, load_tax_schedule
from kakeibo.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Runtime metadata shared by ``/health`` and ``/api/v1/config/meta``."""

    schedule = load_tax_schedule()
    return {
        "version": get_project_version(),
        "schedule_version": schedule.version,
        "default_locale": BASE_LOCALE,
        "locales": list(available_locales()),
    }


def _serialise_schedule(schedule: TaxSchedule) -> dict[str, Any]:
    return {
        "version": schedule.version,
        "currency": schedule.meta.currency,
        "display_unit_factor": schedule.meta.display_unit_factor,
        "employment_deduction": [
            {
                "upper": bracket.upper_bound,
                "rate": bracket.rate,
                "amount": bracket.amount,
            }
            for bracket in schedule.employment_deduction.brackets
        ],
        "income_tax": [
            {"upper": bracket.upper_bound, "rate": bracket.rate}
            for bracket in schedule.income_tax.brackets
        ],
        "social_insurance_rate": schedule.social_insurance.rate,
        "residence_tax_rate": schedule.residence_tax.rate,
    }


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/tax-schedule")
def get_tax_schedule() -> tuple[Any, int]:
    """Return the bracket tables and rates used by the estimator."""

    return jsonify(_serialise_schedule(load_tax_schedule())), 200
