"""JSON error bodies shared by the blueprints and the app-level handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from flask import jsonify

from kakeibo.backend.app.localization import get_translator


@dataclass(frozen=True)
class ProblemResponse:
    """``{"error": code, "message": text}`` plus any extra keys."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        body = {"error": self.error, **self.extra}
        if self.message:
            body["message"] = self.message
        return body

    def to_response(self) -> tuple[Any, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    return ProblemResponse(error=error, status=status, message=message, extra=extra)


def translated_problem(
    error: str,
    *,
    status: int,
    message_key: str,
    locale: str | None = None,
) -> ProblemResponse:
    """Build a problem whose message comes from the backend catalogue."""

    message = get_translator(locale)(message_key)
    return ProblemResponse(error=error, status=status, message=message)


__all__ = ["ProblemResponse", "problem_response", "translated_problem"]
