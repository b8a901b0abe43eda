"""Sign-in state for the browser client, backed by Flask-Login.

The OAuth handshake happens between the browser and the provider. Once it
completes the client posts the identity it received; this module logs that
identity in with Flask-Login, keeps the profile in the signed session cookie
and notifies registered listeners.
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Callable, Literal

from flask import Flask, current_app, session
from flask_login import LoginManager, current_user, login_user, logout_user

from kakeibo.backend.app.http import translated_problem
from kakeibo.backend.app.models import AuthUser

logger = logging.getLogger(__name__)

AuthEvent = Literal["SIGNED_IN", "SIGNED_OUT"]
AuthListener = Callable[[AuthEvent, AuthUser | None], None]

SUPPORTED_PROVIDERS = frozenset({"google"})
_PROFILE_KEY = "auth_user"
_EXTENSION_KEY = "kakeibo.auth"


class AuthError(Exception):
    """Raised when a sign-in attempt cannot be honoured."""


def _load_user(user_id: str) -> AuthUser | None:
    raw = session.get(_PROFILE_KEY)
    if not isinstance(raw, dict) or raw.get("id") != user_id:
        return None
    try:
        return AuthUser(id=raw["id"], email=raw["email"], provider=raw["provider"])
    except KeyError:
        logger.warning("Discarding malformed auth session payload")
        session.pop(_PROFILE_KEY, None)
        return None


def _unauthorized():
    return translated_problem(
        "unauthorized", status=401, message_key="errors.unauthorized"
    ).to_response()


class AuthSession:
    """Current-user lookup, sign-in/out and state-change listeners."""

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []
        self._lock = Lock()

    def current_user(self) -> AuthUser | None:
        if not current_user.is_authenticated:
            return None
        return current_user._get_current_object()

    def sign_in_with_oauth(self, provider: str, *, user_id: str, email: str) -> AuthUser:
        provider_key = provider.strip().lower()
        if provider_key not in SUPPORTED_PROVIDERS:
            raise AuthError(f"Unsupported OAuth provider: {provider}")

        user = AuthUser(id=user_id, email=email, provider=provider_key)
        session[_PROFILE_KEY] = user.as_dict()
        login_user(user)
        self._notify("SIGNED_IN", user)
        return user

    def sign_out(self) -> None:
        previous = self.current_user()
        logout_user()
        session.pop(_PROFILE_KEY, None)
        if previous is not None:
            self._notify("SIGNED_OUT", None)

    def on_auth_state_change(self, callback: AuthListener) -> Callable[[], None]:
        """Register ``callback`` and return a function that unsubscribes it."""

        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, event: AuthEvent, user: AuthUser | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, user)
            except Exception:
                logger.exception("Auth state listener failed for %s", event)


def init_auth(app: Flask) -> AuthSession:
    """Attach a ``LoginManager`` and an :class:`AuthSession` to ``app``."""

    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.user_loader(_load_user)
    login_manager.unauthorized_handler(_unauthorized)

    auth = AuthSession()
    app.extensions[_EXTENSION_KEY] = auth
    return auth


def get_auth_session() -> AuthSession:
    return current_app.extensions[_EXTENSION_KEY]


__all__ = [
    "AuthError",
    "AuthSession",
    "SUPPORTED_PROVIDERS",
    "get_auth_session",
    "init_auth",
]
