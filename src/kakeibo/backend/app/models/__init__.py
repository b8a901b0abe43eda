"""Typed records and request/response models shared across the services.

Records (:mod:`.records`) are frozen dataclasses passed between routes,
services and repositories. API models (:mod:`.api`) are Pydantic models that
validate what clients send and shape what they receive.
"""

from __future__ import annotations

from .records import (
    AuthUser,
    SalaryField,
    SalaryRecord,
    TodoItem,
    apply_field_update,
    parse_amount,
)
from .api import (
    AmountUnit,
    CalculationInputs,
    CalculationRequest,
    CalculationResponse,
    CalculationStep,
    ResponseMeta,
    SalaryPatchRequest,
    SalaryRecordRequest,
    SignInRequest,
    TaxResultPayload,
    TodoCreateRequest,
    format_validation_error,
)

__all__ = [
    "AmountUnit",
    "AuthUser",
    "CalculationInputs",
    "CalculationRequest",
    "CalculationResponse",
    "CalculationStep",
    "ResponseMeta",
    "SalaryField",
    "SalaryPatchRequest",
    "SalaryRecord",
    "SalaryRecordRequest",
    "SignInRequest",
    "TaxResultPayload",
    "TodoCreateRequest",
    "TodoItem",
    "apply_field_update",
    "format_validation_error",
    "parse_amount",
]
