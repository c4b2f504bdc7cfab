from datetime import timedelta

import pytest

import auth
import config
import models


def test_password_hash_is_salted_and_verifiable():
    first = auth.get_password_hash("hunter22")
    second = auth.get_password_hash("hunter22")
    assert first != second
    assert auth.verify_password("hunter22", first)
    assert auth.verify_password("hunter22", second)
    assert not auth.verify_password("hunter23", first)


def test_verify_password_rejects_garbage_hash():
    assert not auth.verify_password("whatever", "not-a-hash")


def test_session_resolves_to_owner(db, make_user):
    user = make_user("alice", "secret")
    token = auth.create_session(db, user.id)
    resolved = auth.resolve_session(db, token)
    assert resolved is not None
    assert resolved.id == user.id


def test_tokens_are_unique_and_long(db, make_user):
    user = make_user()
    tokens = {auth.create_session(db, user.id) for _ in range(5)}
    assert len(tokens) == 5
    assert all(len(t) >= 64 for t in tokens)


def test_unknown_or_missing_token_resolves_to_nobody(db):
    assert auth.resolve_session(db, None) is None
    assert auth.resolve_session(db, "") is None
    assert auth.resolve_session(db, "nope") is None


def test_deleted_session_no_longer_resolves(db, make_user):
    user = make_user()
    token = auth.create_session(db, user.id)
    auth.delete_session(db, token)
    assert auth.resolve_session(db, token) is None


def test_delete_session_is_idempotent(db):
    auth.delete_session(db, "never-issued")
    auth.delete_session(db, None)


def test_expired_session_resolves_to_nobody_and_is_removed(db, make_user):
    user = make_user()
    start = models.utcnow()
    token = auth.create_session(db, user.id, now=start)

    assert auth.resolve_session(db, token, now=start + timedelta(hours=1)) is not None
    later = start + auth.SESSION_LIFETIME + timedelta(seconds=1)
    assert auth.resolve_session(db, token, now=later) is None
    assert db.query(models.AuthSession).filter_by(token=token).first() is None


def test_login_sets_http_only_cookie(client, make_user):
    make_user("alice", "secret")
    resp = client.post("/auth/login", json={"username": "alice", "password": "secret"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["user"]["username"] == "alice"
    assert body["user"]["isAdmin"] is False
    set_cookie = resp.headers["set-cookie"]
    assert config.SESSION_COOKIE_NAME in set_cookie
    assert "httponly" in set_cookie.lower()


@pytest.mark.parametrize("username,password", [("alice", "wrong"), ("mallory", "secret")])
def test_login_failure_does_not_reveal_username(client, make_user, username, password):
    make_user("alice", "secret")
    resp = client.post("/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid username or password"}


def test_login_requires_both_fields(client):
    resp = client.post("/auth/login", json={"username": "", "password": ""})
    assert resp.status_code == 400


def test_session_endpoint_is_anonymous_friendly(client):
    resp = client.get("/auth/session")
    assert resp.status_code == 200
    assert resp.json() == {"user": None}


def test_session_endpoint_reports_identity(client, make_user, login):
    user = make_user("root", "toor", is_admin=True)
    login("root", "toor")
    resp = client.get("/auth/session")
    assert resp.json() == {"user": {"id": user.id, "username": "root", "isAdmin": True}}


def test_logout_revokes_session(client, db, make_user, login):
    make_user("alice", "secret")
    login("alice", "secret")
    token = client.cookies.get(config.SESSION_COOKIE_NAME)

    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}

    assert token
    assert auth.resolve_session(db, token) is None
    assert client.get("/auth/session").json() == {"user": None}


def test_logout_without_session_succeeds(client):
    resp = client.post("/auth/logout")
    assert resp.status_code == 200


def test_change_password(client, make_user, login):
    make_user("alice", "secret")
    login("alice", "secret")

    resp = client.post(
        "/auth/change-password",
        json={"currentPassword": "secret", "newPassword": "better"},
    )
    assert resp.status_code == 200

    client.post("/auth/logout")
    bad = client.post("/auth/login", json={"username": "alice", "password": "secret"})
    assert bad.status_code == 401
    login("alice", "better")


def test_change_password_checks_current_password(client, make_user, login):
    make_user("alice", "secret")
    login("alice", "secret")
    resp = client.post(
        "/auth/change-password",
        json={"currentPassword": "nope", "newPassword": "better"},
    )
    assert resp.status_code == 401


def test_change_password_enforces_length(client, make_user, login):
    make_user("alice", "secret")
    login("alice", "secret")
    resp = client.post(
        "/auth/change-password",
        json={"currentPassword": "secret", "newPassword": "abc"},
    )
    assert resp.status_code == 400
    assert "at least 4" in resp.json()["error"]


def test_change_password_requires_session(client):
    resp = client.post(
        "/auth/change-password",
        json={"currentPassword": "a", "newPassword": "bbbb"},
    )
    assert resp.status_code == 401
