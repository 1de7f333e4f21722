import pathlib
import sys
from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient


ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import server_group.main as server_main


def test_get_optional_current_user_missing_cookie_returns_none():
    assert server_main.get_optional_current_user(None) is None


def test_get_optional_current_user_invalid_token_returns_none():
    assert server_main.get_optional_current_user("not-a-valid-token") is None


def test_get_optional_current_user_expired_token_returns_none(monkeypatch):
    expired_token = server_main.create_access_token(
        subject="42", expires_delta=timedelta(minutes=-5)
    )

    def _unexpected_get_user_by_id(_uid: int):
        raise AssertionError("get_user_by_id should not be called for expired tokens")

    monkeypatch.setattr(server_main, "get_user_by_id", _unexpected_get_user_by_id)

    assert server_main.get_optional_current_user(expired_token) is None


def test_get_optional_current_user_valid_token_returns_user(monkeypatch):
    user = server_main.UserOut(
        id=123,
        name="alice",
        role="user",
        created_utc=datetime.utcnow(),
    )

    monkeypatch.setattr(server_main, "get_user_by_id", lambda uid: user if uid == 123 else None)

    token = server_main.create_access_token(subject=str(user.id))

    assert server_main.get_optional_current_user(token) is user


def test_get_current_user_requires_session():
    with pytest.raises(HTTPException) as exc:
        server_main.get_current_user(None)

    assert exc.value.status_code == 401


def test_verify_password_rejects_missing_hash():
    assert server_main.verify_password("secret", None) is False


def test_login_form_redirects_to_local_destination(monkeypatch):
    monkeypatch.setattr(
        server_main,
        "get_user_with_password",
        lambda identifier: {"id": 2, "name": "B", "password_hash": "hash", "role": "user", "created_utc": None},
    )
    monkeypatch.setattr(server_main, "verify_password", lambda password, password_hash: password == "pw")

    client = TestClient(server_main.app)
    response = client.post(
        "/user/login",
        data={"username": "B", "password": "pw", "destination": "/node/7"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/node/7"
    assert server_main.SESSION_COOKIE_NAME in response.cookies


def test_login_form_ignores_offsite_destination(monkeypatch):
    monkeypatch.setattr(
        server_main,
        "get_user_with_password",
        lambda identifier: {"id": 2, "name": "B", "password_hash": "hash", "role": "user", "created_utc": None},
    )
    monkeypatch.setattr(server_main, "verify_password", lambda password, password_hash: True)

    client = TestClient(server_main.app)
    response = client.post(
        "/user/login",
        data={"username": "B", "password": "pw", "destination": "https://evil.example.com/"},
        follow_redirects=False,
    )

    assert response.headers["location"] == "/"


def test_login_form_rejects_bad_password(monkeypatch):
    monkeypatch.setattr(server_main, "get_user_with_password", lambda identifier: None)

    client = TestClient(server_main.app)
    response = client.post("/user/login", data={"username": "B", "password": "nope"})

    assert response.status_code == 401


def test_login_page_keeps_destination():
    client = TestClient(server_main.app)

    response = client.get("/user/login", params={"destination": "/node/7"})

    assert response.status_code == 200
    assert 'name="destination" value="/node/7"' in response.text


class _UserCursor:
    def __init__(self, row):
        self.row = row
        self.executed = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.executed.append((sql, params))

    def fetchone(self):
        return self.row


class _TransactionScopedConnection:
    """Mimics psycopg2: leaving ``with conn`` ends the transaction but keeps the connection open."""

    def __init__(self, row):
        self.cursor_obj = _UserCursor(row)
        self.closed = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def cursor(self, cursor_factory=None):
        return self.cursor_obj

    def close(self):
        self.closed += 1


def test_get_user_by_id_closes_connection(monkeypatch):
    row = {"id": 2, "name": "B", "role": "user", "created_utc": datetime.utcnow()}
    conn = _TransactionScopedConnection(row)
    monkeypatch.setattr(server_main, "get_conn", lambda: conn)

    user = server_main.get_user_by_id(2)

    assert user.name == "B"
    assert conn.closed == 1


def test_get_user_with_password_closes_connection(monkeypatch):
    conn = _TransactionScopedConnection(None)
    monkeypatch.setattr(server_main, "get_conn", lambda: conn)

    assert server_main.get_user_with_password(" B ") is None
    assert conn.closed == 1
    assert conn.cursor_obj.executed[0][1] == ("B",)


def test_auth_me_requires_session():
    client = TestClient(server_main.app)

    response = client.get("/api/auth/me")

    assert response.status_code == 401


def test_app_context_registers_only_the_optional_user_dependency():
    from server_group import app_context

    assert not hasattr(app_context, "get_current_user")
    assert app_context.get_optional_current_user(None) is None
