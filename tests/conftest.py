"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from kakeibo.backend.app import create_app  # noqa: E402

TEST_USER = {"provider": "google", "user_id": "user-1", "email": "taro@example.com"}


@pytest.fixture()
def app(monkeypatch: pytest.MonkeyPatch) -> Flask:
    """Return a configured Flask application for integration tests."""

    monkeypatch.setenv("KAKEIBO_SECRET_KEY", "test-secret")
    monkeypatch.delenv("KAKEIBO_DB", raising=False)
    application = create_app()
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()


@pytest.fixture()
def signed_in_client(client: FlaskClient) -> FlaskClient:
    """Return a client whose session carries :data:`TEST_USER`."""

    response = client.post("/api/v1/auth/sign-in", json=TEST_USER)
    assert response.status_code == 200
    return client
