"""Endpoints for the signed-in user's salary record and its tax breakdown."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from pydantic import ValidationError

from kakeibo.backend.app.http import problem_response
from kakeibo.backend.app.models import (
    SalaryPatchRequest,
    SalaryRecord,
    SalaryRecordRequest,
    format_validation_error,
    parse_amount,
)
from kakeibo.backend.app.services.calculation_service import to_base_units
from kakeibo.backend.app.services.salary_service import (
    get_salary_repository,
    load_salary,
    update_salary_fields,
)
from kakeibo.backend.config.tax_schedule import load_tax_schedule
from kakeibo.backend.services import calculate_for_record, parse_json_object, resolve_locale

blueprint = Blueprint("salary", __name__, url_prefix="/api/v1/salary")

logger = logging.getLogger(__name__)

_DEFAULT_HISTORY_LIMIT = 20


def _parse_positive_int(value: str | None, *, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring invalid history limit: %s", value)
        return default
    if parsed <= 0:
        logger.warning("Ignoring non-positive history limit: %s", value)
        return default
    return parsed


def _record_payload(record: SalaryRecord) -> dict[str, Any]:
    return {
        "record": record.as_dict(),
        "calculation": calculate_for_record(record, locale=resolve_locale(request)),
    }


@blueprint.get("")
@login_required
def get_salary() -> tuple[Any, int]:
    """Return the latest stored record (or zero defaults) with its breakdown."""

    record = load_salary(get_salary_repository(), current_user.id)
    return jsonify(_record_payload(record)), HTTPStatus.OK


@blueprint.put("")
@login_required
def save_salary() -> tuple[Any, int]:
    """Insert a new record, or update the record named by ``id``."""

    payload = parse_json_object(request)
    try:
        salary_request = SalaryRecordRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, context="salary")) from exc

    if salary_request.user_id is not None and salary_request.user_id != current_user.id:
        return problem_response(
            "forbidden",
            status=HTTPStatus.FORBIDDEN,
            message="Cannot save a record for another user",
        ).to_response()

    schedule = load_tax_schedule()
    unit = salary_request.unit
    record = SalaryRecord(
        id=salary_request.id,
        user_id=current_user.id,
        income=to_base_units(salary_request.income, unit, schedule),
        social_insurance_deduction=to_base_units(
            salary_request.social_insurance_deduction, unit, schedule
        ),
        other_deduction=to_base_units(salary_request.other_deduction, unit, schedule),
        tax_credit=to_base_units(salary_request.tax_credit, unit, schedule),
    )

    saved = get_salary_repository().save(record)

    status = HTTPStatus.OK if record.is_persisted else HTTPStatus.CREATED
    return jsonify(_record_payload(saved)), status


@blueprint.patch("")
@login_required
def patch_salary() -> tuple[Any, int]:
    """Apply individual field edits to the latest record and save it."""

    payload = parse_json_object(request)
    try:
        patch_request = SalaryPatchRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, context="salary")) from exc

    changes = patch_request.changes()
    if patch_request.unit != "yen":
        schedule = load_tax_schedule()
        changes = {
            field: to_base_units(parse_amount(value), patch_request.unit, schedule)
            for field, value in changes.items()
        }

    saved = update_salary_fields(get_salary_repository(), current_user.id, changes)
    return jsonify(_record_payload(saved)), HTTPStatus.OK


@blueprint.get("/history")
@login_required
def salary_history() -> tuple[Any, int]:
    limit = _parse_positive_int(request.args.get("limit"), default=_DEFAULT_HISTORY_LIMIT)
    records = get_salary_repository().history_for_user(current_user.id, limit=limit)
    return jsonify({"records": [record.as_dict() for record in records]}), HTTPStatus.OK


@blueprint.delete("/<int:record_id>")
@login_required
def delete_salary(record_id: int) -> tuple[Any, int]:
    get_salary_repository().delete(current_user.id, record_id)
    return jsonify({"id": record_id, "deleted": True}), HTTPStatus.OK
