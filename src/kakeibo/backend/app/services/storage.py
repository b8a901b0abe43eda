"""Shared plumbing for the table repositories (errors, clocks, SQLite)."""

from __future__ import annotations

import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DATABASE_ENV = "KAKEIBO_DB"


class RecordNotFoundError(LookupError):
    """Raised when a row does not exist or belongs to another user."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(raw: str) -> datetime:
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def connect(path: str) -> sqlite3.Connection:
    """Open a connection configured for concurrent readers."""

    connection = sqlite3.connect(path, check_same_thread=False)
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA journal_mode=WAL")
    connection.execute("PRAGMA synchronous=NORMAL")
    return connection


def configured_database_path() -> Path | None:
    """Return the SQLite path from ``KAKEIBO_DB`` or ``None`` for in-memory storage."""

    raw = os.getenv(DATABASE_ENV)
    if raw is None or not raw.strip():
        return None
    path = Path(raw.strip()).expanduser()
    logger.info("Using SQLite storage at %s", path)
    return path


__all__ = [
    "Clock",
    "DATABASE_ENV",
    "RecordNotFoundError",
    "configured_database_path",
    "connect",
    "parse_timestamp",
    "utc_now",
]
