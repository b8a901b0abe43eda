"""Tests for the session-backed auth helpers."""

from __future__ import annotations

import logging

import pytest
from flask import Flask, session

from kakeibo.backend.app.models import AuthUser
from kakeibo.backend.app.services.auth_service import (
    AuthError,
    AuthSession,
    get_auth_session,
)


def test_sign_in_stores_user_and_notifies_listeners(app: Flask) -> None:
    events: list[tuple[str, AuthUser | None]] = []

    with app.test_request_context("/"):
        auth = get_auth_session()
        unsubscribe = auth.on_auth_state_change(lambda event, user: events.append((event, user)))

        user = auth.sign_in_with_oauth("Google", user_id="user-1", email="taro@example.com")

        assert user == AuthUser(id="user-1", email="taro@example.com", provider="google")
        assert auth.current_user() == user
        unsubscribe()

    assert events == [("SIGNED_IN", user)]


def test_sign_out_clears_session_and_notifies_once(app: Flask) -> None:
    events: list[str] = []
    auth = AuthSession()
    auth.on_auth_state_change(lambda event, user: events.append(event))

    with app.test_request_context("/"):
        auth.sign_in_with_oauth("google", user_id="user-1", email="taro@example.com")
        auth.sign_out()
        auth.sign_out()

        assert auth.current_user() is None

    assert events == ["SIGNED_IN", "SIGNED_OUT"]


def test_unsubscribed_listeners_are_not_called(app: Flask) -> None:
    calls: list[str] = []
    auth = AuthSession()
    unsubscribe = auth.on_auth_state_change(lambda event, user: calls.append(event))
    unsubscribe()
    unsubscribe()

    with app.test_request_context("/"):
        auth.sign_in_with_oauth("google", user_id="user-1", email="taro@example.com")

    assert calls == []


def test_unsupported_provider_is_rejected(app: Flask) -> None:
    with app.test_request_context("/"):
        with pytest.raises(AuthError, match="github"):
            get_auth_session().sign_in_with_oauth(
                "github", user_id="user-1", email="taro@example.com"
            )
        assert get_auth_session().current_user() is None


def test_failing_listener_is_logged_and_does_not_block_sign_in(
    app: Flask, caplog: pytest.LogCaptureFixture
) -> None:
    auth = AuthSession()

    def broken(event, user):
        raise RuntimeError("boom")

    auth.on_auth_state_change(broken)

    with app.test_request_context("/"), caplog.at_level(logging.ERROR):
        user = auth.sign_in_with_oauth("google", user_id="user-1", email="taro@example.com")
        assert auth.current_user() == user

    assert "Auth state listener failed" in caplog.text


def test_malformed_session_payload_is_discarded(app: Flask) -> None:
    with app.test_request_context("/"):
        session["_user_id"] = "user-1"
        session["auth_user"] = {"id": "user-1"}

        assert get_auth_session().current_user() is None
        assert "auth_user" not in session
