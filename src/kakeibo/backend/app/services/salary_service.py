"""Persistence for salary records: latest-per-user reads and upserts."""

from __future__ import annotations

import logging
import os
from itertools import count
from threading import Lock
from typing import Mapping, Protocol

from flask import Flask, current_app

from kakeibo.backend.app.models import SalaryField, SalaryRecord, apply_field_update

from .storage import (
    Clock,
    RecordNotFoundError,
    configured_database_path,
    connect,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)

_EXTENSION_KEY = "kakeibo.salary"


class SalaryRepository(Protocol):
    def latest_for_user(self, user_id: str) -> SalaryRecord | None: ...

    def history_for_user(
        self, user_id: str, *, limit: int | None = None
    ) -> list[SalaryRecord]: ...

    def save(self, record: SalaryRecord) -> SalaryRecord: ...

    def delete(self, user_id: str, record_id: int) -> None: ...


def _newest_first(records: list[SalaryRecord]) -> list[SalaryRecord]:
    return sorted(
        records,
        key=lambda record: (record.created_at, record.id or 0),
        reverse=True,
    )


class InMemorySalaryRepository:
    """Thread-safe in-memory ``salary_data`` table."""

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now
        self._records: dict[int, SalaryRecord] = {}
        self._ids = count(1)
        self._lock = Lock()

    def latest_for_user(self, user_id: str) -> SalaryRecord | None:
        history = self.history_for_user(user_id, limit=1)
        return history[0] if history else None

    def history_for_user(
        self, user_id: str, *, limit: int | None = None
    ) -> list[SalaryRecord]:
        with self._lock:
            owned = [record for record in self._records.values() if record.user_id == user_id]
        ordered = _newest_first(owned)
        return ordered if limit is None else ordered[:limit]

    def save(self, record: SalaryRecord) -> SalaryRecord:
        with self._lock:
            if record.id is None:
                stored = SalaryRecord(
                    user_id=record.user_id,
                    income=record.income,
                    social_insurance_deduction=record.social_insurance_deduction,
                    other_deduction=record.other_deduction,
                    tax_credit=record.tax_credit,
                    id=next(self._ids),
                    created_at=self._clock(),
                )
            else:
                existing = self._records.get(record.id)
                if existing is None or existing.user_id != record.user_id:
                    raise RecordNotFoundError(record.id)
                stored = SalaryRecord(
                    user_id=existing.user_id,
                    income=record.income,
                    social_insurance_deduction=record.social_insurance_deduction,
                    other_deduction=record.other_deduction,
                    tax_credit=record.tax_credit,
                    id=existing.id,
                    created_at=existing.created_at,
                )
            self._records[stored.id] = stored
        return stored

    def delete(self, user_id: str, record_id: int) -> None:
        with self._lock:
            existing = self._records.get(record_id)
            if existing is None or existing.user_id != user_id:
                raise RecordNotFoundError(record_id)
            del self._records[record_id]


class SQLiteSalaryRepository:
    """SQLite-backed ``salary_data`` table."""

    def __init__(self, path: str | os.PathLike[str], *, clock: Clock | None = None) -> None:
        self._path = str(path)
        self._clock = clock or utc_now
        self._lock = Lock()
        self._initialise()

    def _initialise(self) -> None:
        with connect(self._path) as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS salary_data (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    income REAL NOT NULL DEFAULT 0,
                    social_insurance_deduction REAL NOT NULL DEFAULT 0,
                    other_deduction REAL NOT NULL DEFAULT 0,
                    tax_credit REAL NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
            connection.execute(
                "CREATE INDEX IF NOT EXISTS salary_data_user_created"
                " ON salary_data (user_id, created_at)"
            )

    @staticmethod
    def _decode(row) -> SalaryRecord:
        return SalaryRecord(
            id=row["id"],
            user_id=row["user_id"],
            income=row["income"],
            social_insurance_deduction=row["social_insurance_deduction"],
            other_deduction=row["other_deduction"],
            tax_credit=row["tax_credit"],
            created_at=parse_timestamp(row["created_at"]),
        )

    def latest_for_user(self, user_id: str) -> SalaryRecord | None:
        history = self.history_for_user(user_id, limit=1)
        return history[0] if history else None

    def history_for_user(
        self, user_id: str, *, limit: int | None = None
    ) -> list[SalaryRecord]:
        query = (
            "SELECT * FROM salary_data WHERE user_id = ?"
            " ORDER BY created_at DESC, id DESC"
        )
        params: tuple = (user_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (user_id, limit)
        with self._lock, connect(self._path) as connection:
            rows = connection.execute(query, params).fetchall()
        return [self._decode(row) for row in rows]

    def save(self, record: SalaryRecord) -> SalaryRecord:
        with self._lock, connect(self._path) as connection:
            if record.id is None:
                created_at = self._clock()
                cursor = connection.execute(
                    "INSERT INTO salary_data (user_id, income, social_insurance_deduction,"
                    " other_deduction, tax_credit, created_at) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        record.user_id,
                        record.income,
                        record.social_insurance_deduction,
                        record.other_deduction,
                        record.tax_credit,
                        created_at.isoformat(timespec="microseconds"),
                    ),
                )
                record_id = cursor.lastrowid
            else:
                cursor = connection.execute(
                    "UPDATE salary_data SET income = ?, social_insurance_deduction = ?,"
                    " other_deduction = ?, tax_credit = ? WHERE id = ? AND user_id = ?",
                    (
                        record.income,
                        record.social_insurance_deduction,
                        record.other_deduction,
                        record.tax_credit,
                        record.id,
                        record.user_id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise RecordNotFoundError(record.id)
                record_id = record.id

            row = connection.execute(
                "SELECT * FROM salary_data WHERE id = ?", (record_id,)
            ).fetchone()
        return self._decode(row)

    def delete(self, user_id: str, record_id: int) -> None:
        with self._lock, connect(self._path) as connection:
            cursor = connection.execute(
                "DELETE FROM salary_data WHERE id = ? AND user_id = ?",
                (record_id, user_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(record_id)


def build_salary_repository() -> SalaryRepository:
    """Choose SQLite when ``KAKEIBO_DB`` is set, in-memory storage otherwise."""

    db_path = configured_database_path()
    if db_path is not None:
        return SQLiteSalaryRepository(db_path)
    return InMemorySalaryRepository()


def init_salary_repository(
    app: Flask, repository: SalaryRepository | None = None
) -> SalaryRepository:
    """Attach a salary repository to ``app``, built from ``KAKEIBO_DB`` by default."""

    if repository is None:
        repository = build_salary_repository()
    app.extensions[_EXTENSION_KEY] = repository
    return repository


def get_salary_repository() -> SalaryRepository:
    return current_app.extensions[_EXTENSION_KEY]


def load_salary(repository: SalaryRepository, user_id: str) -> SalaryRecord:
    """Return the user's latest record, or a zero-filled draft when none exists."""

    record = repository.latest_for_user(user_id)
    if record is None:
        return SalaryRecord(user_id=user_id)
    return record


def update_salary_fields(
    repository: SalaryRepository,
    user_id: str,
    changes: Mapping[SalaryField, float | str],
) -> SalaryRecord:
    """Apply field edits to the latest record and persist the result."""

    record = load_salary(repository, user_id)
    for field, value in changes.items():
        record = apply_field_update(record, field, value)
    saved = repository.save(record)
    logger.info(
        "Updated salary record %s for user %s (%s)",
        saved.id,
        user_id,
        ", ".join(SalaryField(field).value for field in changes),
    )
    return saved


__all__ = [
    "InMemorySalaryRepository",
    "SQLiteSalaryRepository",
    "SalaryRepository",
    "build_salary_repository",
    "get_salary_repository",
    "init_salary_repository",
    "load_salary",
    "update_salary_fields",
]
