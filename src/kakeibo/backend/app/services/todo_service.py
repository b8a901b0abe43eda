"""Persistence for the todo list."""

from __future__ import annotations

import os
from itertools import count
from threading import Lock
from typing import Protocol

from flask import Flask, current_app

from kakeibo.backend.app.models import TodoItem

from .storage import (
    Clock,
    RecordNotFoundError,
    configured_database_path,
    connect,
    parse_timestamp,
    utc_now,
)

_EXTENSION_KEY = "kakeibo.todos"


class TodoRepository(Protocol):
    def list_for_user(self, user_id: str) -> list[TodoItem]: ...

    def create(self, user_id: str, text: str, *, done: bool = False) -> TodoItem: ...

    def delete(self, user_id: str, todo_id: int) -> None: ...


class InMemoryTodoRepository:
    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or utc_now
        self._items: dict[int, TodoItem] = {}
        self._ids = count(1)
        self._lock = Lock()

    def list_for_user(self, user_id: str) -> list[TodoItem]:
        with self._lock:
            owned = [item for item in self._items.values() if item.user_id == user_id]
        return sorted(owned, key=lambda item: (item.created_at, item.id), reverse=True)

    def create(self, user_id: str, text: str, *, done: bool = False) -> TodoItem:
        with self._lock:
            item = TodoItem(
                user_id=user_id,
                text=text,
                done=done,
                id=next(self._ids),
                created_at=self._clock(),
            )
            self._items[item.id] = item
        return item

    def delete(self, user_id: str, todo_id: int) -> None:
        with self._lock:
            item = self._items.get(todo_id)
            if item is None or item.user_id != user_id:
                raise RecordNotFoundError(todo_id)
            del self._items[todo_id]


class SQLiteTodoRepository:
    def __init__(self, path: str | os.PathLike[str], *, clock: Clock | None = None) -> None:
        self._path = str(path)
        self._clock = clock or utc_now
        self._lock = Lock()
        with connect(self._path) as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS todos (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    text TEXT NOT NULL,
                    done INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _decode(row) -> TodoItem:
        return TodoItem(
            id=row["id"],
            user_id=row["user_id"],
            text=row["text"],
            done=bool(row["done"]),
            created_at=parse_timestamp(row["created_at"]),
        )

    def list_for_user(self, user_id: str) -> list[TodoItem]:
        with self._lock, connect(self._path) as connection:
            rows = connection.execute(
                "SELECT * FROM todos WHERE user_id = ? ORDER BY created_at DESC, id DESC",
                (user_id,),
            ).fetchall()
        return [self._decode(row) for row in rows]

    def create(self, user_id: str, text: str, *, done: bool = False) -> TodoItem:
        created_at = self._clock()
        with self._lock, connect(self._path) as connection:
            cursor = connection.execute(
                "INSERT INTO todos (user_id, text, done, created_at) VALUES (?, ?, ?, ?)",
                (user_id, text, int(done), created_at.isoformat(timespec="microseconds")),
            )
            todo_id = cursor.lastrowid
        return TodoItem(
            user_id=user_id,
            text=text,
            done=done,
            id=todo_id,
            created_at=created_at,
        )

    def delete(self, user_id: str, todo_id: int) -> None:
        with self._lock, connect(self._path) as connection:
            cursor = connection.execute(
                "DELETE FROM todos WHERE id = ? AND user_id = ?",
                (todo_id, user_id),
            )
            if cursor.rowcount == 0:
                raise RecordNotFoundError(todo_id)


def build_todo_repository() -> TodoRepository:
    db_path = configured_database_path()
    if db_path is not None:
        return SQLiteTodoRepository(db_path)
    return InMemoryTodoRepository()


def init_todo_repository(app: Flask, repository: TodoRepository | None = None) -> TodoRepository:
    if repository is None:
        repository = build_todo_repository()
    app.extensions[_EXTENSION_KEY] = repository
    return repository


def get_todo_repository() -> TodoRepository:
    return current_app.extensions[_EXTENSION_KEY]


__all__ = [
    "InMemoryTodoRepository",
    "SQLiteTodoRepository",
    "TodoRepository",
    "build_todo_repository",
    "get_todo_repository",
    "init_todo_repository",
]
