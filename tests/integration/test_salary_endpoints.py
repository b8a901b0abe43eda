"""Integration tests for the signed-in salary endpoints."""

from __future__ import annotations

import logging
import sqlite3
from http import HTTPStatus

import pytest
from flask import Flask
from flask.testing import FlaskClient

from kakeibo.backend.app import create_app
from kakeibo.backend.app.services.salary_service import (
    InMemorySalaryRepository,
    SQLiteSalaryRepository,
    init_salary_repository,
)


@pytest.mark.parametrize(
    ("method", "path"),
    [
        ("get", "/api/v1/salary"),
        ("put", "/api/v1/salary"),
        ("patch", "/api/v1/salary"),
        ("get", "/api/v1/salary/history"),
        ("delete", "/api/v1/salary/1"),
    ],
)
def test_salary_endpoints_require_sign_in(client: FlaskClient, method: str, path: str) -> None:
    response = getattr(client, method)(path, json={})

    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert response.get_json() == {"error": "unauthorized", "message": "ログインが必要です"}


def test_get_salary_returns_zero_defaults_for_new_user(signed_in_client: FlaskClient) -> None:
    response = signed_in_client.get("/api/v1/salary")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["record"]["id"] is None
    assert payload["record"]["income"] == 0
    assert payload["calculation"]["result"]["total_tax"] == -55_000


def test_put_salary_creates_then_updates_record(signed_in_client: FlaskClient) -> None:
    created = signed_in_client.put(
        "/api/v1/salary",
        json={"income": 500, "social_insurance_deduction": 97.25, "unit": "man_yen"},
    )

    assert created.status_code == HTTPStatus.CREATED
    record = created.get_json()["record"]
    assert record["user_id"] == "user-1"
    assert record["income"] == 5_000_000
    assert created.get_json()["calculation"]["result"]["total_tax"] == 497_500

    updated = signed_in_client.put(
        "/api/v1/salary",
        json={"id": record["id"], "income": 5_000_000, "tax_credit": 50_000},
    )

    assert updated.status_code == HTTPStatus.OK
    assert updated.get_json()["record"]["id"] == record["id"]
    assert updated.get_json()["record"]["tax_credit"] == 50_000
    assert updated.get_json()["record"]["social_insurance_deduction"] == 0


def test_put_salary_rejects_records_for_other_users(signed_in_client: FlaskClient) -> None:
    response = signed_in_client.put(
        "/api/v1/salary", json={"user_id": "someone-else", "income": 1}
    )

    assert response.status_code == HTTPStatus.FORBIDDEN
    assert response.get_json()["error"] == "forbidden"


def test_put_salary_with_unknown_id_returns_not_found(signed_in_client: FlaskClient) -> None:
    response = signed_in_client.put("/api/v1/salary", json={"id": 42, "income": 1})

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.get_json()["error"] == "not_found"


def test_put_salary_rejects_negative_amounts(signed_in_client: FlaskClient) -> None:
    response = signed_in_client.put("/api/v1/salary", json={"income": -1})

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "Invalid salary payload" in response.get_json()["message"]


def test_patch_salary_updates_single_field(signed_in_client: FlaskClient) -> None:
    signed_in_client.put("/api/v1/salary", json={"income": 5_000_000})

    response = signed_in_client.patch(
        "/api/v1/salary", json={"field": "social_insurance_deduction", "value": "972,500"}
    )

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["record"]["income"] == 5_000_000
    assert payload["record"]["social_insurance_deduction"] == 972_500
    assert payload["calculation"]["result"]["taxable_income"] == 2_487_500


def test_patch_salary_accepts_update_mapping_in_man_yen(
    signed_in_client: FlaskClient,
) -> None:
    response = signed_in_client.patch(
        "/api/v1/salary",
        json={"updates": {"income": 400, "other_deduction": "48"}, "unit": "man_yen"},
    )

    assert response.status_code == HTTPStatus.OK
    record = response.get_json()["record"]
    assert record["income"] == 4_000_000
    assert record["other_deduction"] == 480_000


def test_patch_salary_treats_blank_values_as_zero(signed_in_client: FlaskClient) -> None:
    signed_in_client.put("/api/v1/salary", json={"income": 1_000, "tax_credit": 10})

    response = signed_in_client.patch(
        "/api/v1/salary", json={"field": "tax_credit", "value": ""}
    )

    assert response.status_code == HTTPStatus.OK
    assert response.get_json()["record"]["tax_credit"] == 0


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"field": "income"},
        {"field": "bonus", "value": 1},
        {"field": "income", "value": "-5"},
    ],
)
def test_patch_salary_rejects_invalid_edits(
    signed_in_client: FlaskClient, payload: dict
) -> None:
    response = signed_in_client.patch("/api/v1/salary", json=payload)

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "validation_error"


def test_history_lists_records_newest_first(signed_in_client: FlaskClient) -> None:
    for income in (1, 2, 3):
        signed_in_client.put("/api/v1/salary", json={"income": income})

    response = signed_in_client.get("/api/v1/salary/history?limit=2")

    assert response.status_code == HTTPStatus.OK
    assert [record["income"] for record in response.get_json()["records"]] == [3, 2]


def test_history_ignores_invalid_limits(signed_in_client: FlaskClient) -> None:
    signed_in_client.put("/api/v1/salary", json={"income": 1})

    response = signed_in_client.get("/api/v1/salary/history?limit=abc")

    assert response.status_code == HTTPStatus.OK
    assert len(response.get_json()["records"]) == 1


def test_delete_salary_record(signed_in_client: FlaskClient) -> None:
    created = signed_in_client.put("/api/v1/salary", json={"income": 1}).get_json()
    record_id = created["record"]["id"]

    response = signed_in_client.delete(f"/api/v1/salary/{record_id}")

    assert response.status_code == HTTPStatus.OK
    assert response.get_json() == {"id": record_id, "deleted": True}
    assert signed_in_client.delete(f"/api/v1/salary/{record_id}").status_code == 404


def test_records_are_isolated_between_users(
    app: Flask, signed_in_client: FlaskClient
) -> None:
    repository = init_salary_repository(app, InMemorySalaryRepository())
    signed_in_client.put("/api/v1/salary", json={"income": 7_000_000})

    signed_in_client.post(
        "/api/v1/auth/sign-in",
        json={"user_id": "user-2", "email": "hanako@example.com"},
    )
    response = signed_in_client.get("/api/v1/salary")

    assert response.get_json()["record"]["income"] == 0
    assert repository.latest_for_user("user-1").income == 7_000_000


def _sign_in(client: FlaskClient) -> None:
    response = client.post(
        "/api/v1/auth/sign-in",
        json={"provider": "google", "user_id": "user-1", "email": "taro@example.com"},
    )
    assert response.status_code == HTTPStatus.OK


def test_each_app_uses_the_database_configured_when_it_is_created(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    monkeypatch.setenv("KAKEIBO_SECRET_KEY", "test-secret")
    db_path = tmp_path / "kakeibo.db"
    monkeypatch.setenv("KAKEIBO_DB", str(db_path))
    first_app = create_app()
    first_client = first_app.test_client()
    _sign_in(first_client)

    saved = first_client.put("/api/v1/salary", json={"income": 3_000_000})

    assert saved.status_code == HTTPStatus.CREATED
    assert db_path.exists()
    stored = SQLiteSalaryRepository(db_path).latest_for_user("user-1")
    assert stored is not None and stored.income == 3_000_000

    monkeypatch.delenv("KAKEIBO_DB")
    second_client = create_app().test_client()
    _sign_in(second_client)

    response = second_client.get("/api/v1/salary")

    assert response.get_json()["record"]["id"] is None
    assert response.get_json()["record"]["income"] == 0


def test_in_memory_records_are_not_shared_between_apps(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("KAKEIBO_SECRET_KEY", "test-secret")
    monkeypatch.delenv("KAKEIBO_DB", raising=False)
    first_client = create_app().test_client()
    second_client = create_app().test_client()
    _sign_in(first_client)
    _sign_in(second_client)

    first_client.put("/api/v1/salary", json={"income": 1_000_000})

    assert second_client.get("/api/v1/salary").get_json()["record"]["id"] is None


class _FailingRepository(InMemorySalaryRepository):
    def save(self, record):
        raise sqlite3.OperationalError("database is locked")

    def history_for_user(self, user_id, *, limit=None):
        raise sqlite3.OperationalError("disk I/O error")


@pytest.mark.parametrize(
    ("method", "path", "payload"),
    [
        ("put", "/api/v1/salary", {"income": 1}),
        ("patch", "/api/v1/salary", {"field": "income", "value": 1}),
        ("get", "/api/v1/salary/history", None),
    ],
)
def test_storage_failures_are_logged_and_reported(
    app: Flask,
    signed_in_client: FlaskClient,
    caplog: pytest.LogCaptureFixture,
    method: str,
    path: str,
    payload: dict | None,
) -> None:
    init_salary_repository(app, _FailingRepository())

    with caplog.at_level(logging.ERROR, logger="kakeibo.backend.app"):
        response = getattr(signed_in_client, method)(path, json=payload)

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.get_json() == {"error": "storage_error", "message": "保存に失敗しました"}
    assert f"Storage operation failed for {method.upper()} {path}" in caplog.text
    assert any(record.exc_info for record in caplog.records)
