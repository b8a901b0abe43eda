"""Todo list endpoints scoped to the signed-in user."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from pydantic import ValidationError

from kakeibo.backend.app.models import TodoCreateRequest, format_validation_error
from kakeibo.backend.app.services.todo_service import get_todo_repository
from kakeibo.backend.services import parse_json_object

blueprint = Blueprint("todos", __name__, url_prefix="/api/v1/todos")

logger = logging.getLogger(__name__)


@blueprint.get("")
@login_required
def list_todos() -> tuple[Any, int]:
    items = get_todo_repository().list_for_user(current_user.id)
    return jsonify({"items": [item.as_dict() for item in items]}), HTTPStatus.OK


@blueprint.post("")
@login_required
def create_todo() -> tuple[Any, int]:
    payload = parse_json_object(request)
    try:
        todo_request = TodoCreateRequest.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(format_validation_error(exc, context="todo")) from exc

    repository = get_todo_repository()
    item = repository.create(current_user.id, todo_request.text, done=todo_request.done)
    logger.info("Created todo %s for user %s", item.id, current_user.id)
    return jsonify(item.as_dict()), HTTPStatus.CREATED


@blueprint.delete("/<int:todo_id>")
@login_required
def delete_todo(todo_id: int) -> tuple[Any, int]:
    get_todo_repository().delete(current_user.id, todo_id)
    logger.info("Deleted todo %s for user %s", todo_id, current_user.id)
    return jsonify({"id": todo_id, "deleted": True}), HTTPStatus.OK
