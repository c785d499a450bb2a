# tests/test_client.py
import json

import pytest
import requests

from weddingsite.client import AuthError, GuestSession


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text or json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


USER = {"id": 7, "email": "jane@example.com", "full_name": "Jane Smith", "is_admin": False}


@pytest.fixture
def storage(tmp_path):
    return tmp_path / "session.json"


def _login(monkeypatch, session, response):
    calls = []

    def fake_post(url, json=None, timeout=None):
        calls.append((url, json))
        return response

    monkeypatch.setattr(requests, "post", fake_post)
    return calls


def test_login_persists_session(monkeypatch, storage):
    session = GuestSession("https://api.wedding.test/", storage_path=storage, auth_version="v1")
    calls = _login(monkeypatch, session, FakeResponse(200, {"token": "jwt-1", "user": USER}))

    assert session.login_with_qr_token("jane-token") == USER
    assert calls == [("https://api.wedding.test/api/auth/login", {"qr_token": "jane-token"})]
    assert session.is_logged_in and not session.is_admin
    assert session.auth_headers() == {"Authorization": "Bearer jwt-1"}

    saved = json.loads(storage.read_text(encoding="utf-8"))
    assert saved == {"id_token": "jwt-1", "user": USER, "auth_version": "v1"}

    restored = GuestSession("https://api.wedding.test", storage_path=storage, auth_version="v1")
    assert restored.token == "jwt-1"
    assert restored.user["email"] == "jane@example.com"


def test_session_with_other_auth_version_is_discarded(storage):
    storage.write_text(json.dumps({"id_token": "old", "user": USER, "auth_version": "v1"}), encoding="utf-8")
    session = GuestSession("https://api.wedding.test", storage_path=storage, auth_version="v2")
    assert not session.is_logged_in
    assert not storage.exists()


def test_unreadable_session_is_discarded(storage):
    storage.write_text("{not json", encoding="utf-8")
    session = GuestSession("https://api.wedding.test", storage_path=storage)
    assert session.token is None
    assert not storage.exists()


def test_failed_login_raises_auth_error(monkeypatch, storage):
    session = GuestSession("https://api.wedding.test", storage_path=storage)
    _login(monkeypatch, session, FakeResponse(401, {"error": "Invalid or expired QR token", "code": "UNAUTHENTICATED"}))
    with pytest.raises(AuthError) as exc:
        session.login_with_qr_token("nope")
    assert str(exc.value) == "Invalid or expired QR token"
    assert exc.value.status_code == 401
    assert not session.is_logged_in
    assert not storage.exists()


def test_logout_clears_storage(monkeypatch, storage):
    session = GuestSession("https://api.wedding.test", storage_path=storage)
    _login(monkeypatch, session, FakeResponse(200, {"token": "jwt-1", "user": {**USER, "is_admin": True}}))
    session.login_with_qr_token("jane-token")
    assert session.is_admin

    session.logout()
    assert session.token is None and session.user is None
    assert not storage.exists()
    assert session.auth_headers() == {}


def test_rejected_token_logs_out(monkeypatch, storage):
    session = GuestSession("https://api.wedding.test", storage_path=storage)
    _login(monkeypatch, session, FakeResponse(200, {"token": "jwt-1", "user": USER}))
    session.login_with_qr_token("jane-token")

    seen = {}

    def fake_request(method, url, headers=None, timeout=None, **kwargs):
        seen.update(method=method, url=url, headers=headers)
        return FakeResponse(401, {"error": "You must be logged in", "code": "UNAUTHENTICATED"})

    monkeypatch.setattr(requests, "request", fake_request)
    response = session.get("/api/rsvp", headers={"Accept": "application/json"})

    assert response.status_code == 401
    assert seen["method"] == "GET"
    assert seen["url"] == "https://api.wedding.test/api/rsvp"
    assert seen["headers"] == {"Accept": "application/json", "Authorization": "Bearer jwt-1"}
    assert not session.is_logged_in
    assert not storage.exists()


def test_authorized_request_keeps_session(monkeypatch):
    session = GuestSession("https://api.wedding.test")
    session.token, session.user = "jwt-1", USER
    monkeypatch.setattr(requests, "request", lambda *a, **kw: FakeResponse(200, {"ok": True}))
    assert session.post("/api/rsvp", json={"attending": "NO"}).json() == {"ok": True}
    assert session.is_logged_in
