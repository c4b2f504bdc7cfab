import pytest

import auth
import crud
import main
import models
import schemas


@pytest.fixture
def admin(make_user, login):
    user = make_user("root", "toor", is_admin=True)
    login("root", "toor")
    return user


def test_admin_routes_reject_anonymous(client):
    assert client.get("/admin/users").status_code == 401
    resp = client.post("/admin/users", json={"username": "bob", "password": "pass"})
    assert resp.status_code == 401


def test_admin_routes_reject_non_admin(client, make_user, login):
    make_user("alice", "secret")
    login("alice", "secret")
    resp = client.get("/admin/users")
    assert resp.status_code == 403
    assert resp.json() == {"error": "Admin privileges required"}


def test_list_users_is_stable(client, admin, make_user):
    make_user("bob", "pass")
    make_user("carol", "pass")
    first = client.get("/admin/users").json()["users"]
    second = client.get("/admin/users").json()["users"]
    assert first == second
    assert [u["username"] for u in first] == ["root", "bob", "carol"]
    assert all("passwordHash" not in u and "password_hash" not in u for u in first)


def test_created_user_can_log_in(client, admin):
    resp = client.post("/admin/users", json={"username": "bob", "password": "pass", "isAdmin": True})
    assert resp.status_code == 200
    created = resp.json()["user"]
    assert created["username"] == "bob"
    assert created["isAdmin"] is True

    client.post("/auth/logout")
    login = client.post("/auth/login", json={"username": "bob", "password": "pass"})
    assert login.status_code == 200
    assert login.json()["user"] == created


def test_duplicate_username_conflicts(client, admin, db):
    assert client.post("/admin/users", json={"username": "bob", "password": "pass"}).status_code == 200
    resp = client.post("/admin/users", json={"username": "bob", "password": "other"})
    assert resp.status_code == 409
    assert db.query(models.User).filter_by(username="bob").count() == 1


def test_usernames_are_case_sensitive(client, admin):
    assert client.post("/admin/users", json={"username": "bob", "password": "pass"}).status_code == 200
    assert client.post("/admin/users", json={"username": "Bob", "password": "pass"}).status_code == 200


@pytest.mark.parametrize("payload,message", [
    ({"username": "b", "password": "pass"}, "Username must be at least 2 characters"),
    ({"username": "bob", "password": "abc"}, "Password must be at least 4 characters"),
    ({"username": "", "password": "pass"}, "Username and password are required"),
])
def test_create_user_policy(client, admin, payload, message):
    resp = client.post("/admin/users", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"] == message


def test_delete_user_removes_sessions_and_images(client, admin, db, make_user):
    bob_id = make_user("bob", "pass").id
    auth.create_session(db, bob_id)
    crud.save_image(db, schemas.ImageIn(id="img", url="http://x/img.png"), bob_id)

    resp = client.delete(f"/admin/users/{bob_id}")
    assert resp.status_code == 200
    db.expire_all()
    assert crud.get_user_by_id(db, bob_id) is None
    assert db.query(models.AuthSession).filter_by(user_id=bob_id).count() == 0
    assert crud.list_images(db, bob_id) == []


def test_admin_cannot_delete_self(client, admin):
    resp = client.delete(f"/admin/users/{admin.id}")
    assert resp.status_code == 400


def test_delete_unknown_user(client, admin):
    assert client.delete("/admin/users/does-not-exist").status_code == 404


def test_reset_password(client, admin, make_user):
    bob = make_user("bob", "pass")
    resp = client.patch(f"/admin/users/{bob.id}", json={"password": "fresh"})
    assert resp.status_code == 200

    client.post("/auth/logout")
    assert client.post("/auth/login", json={"username": "bob", "password": "fresh"}).status_code == 200


def test_reset_password_unknown_user(client, admin):
    assert client.patch("/admin/users/nobody", json={"password": "fresh"}).status_code == 404


def test_bootstrap_admin_is_created_once(db, monkeypatch):
    monkeypatch.setattr(main.config, "ADMIN_USERNAME", "boot")
    monkeypatch.setattr(main.config, "ADMIN_PASSWORD", "bootpass")

    main.seed_admin(db)
    main.seed_admin(db)

    users = crud.list_users(db)
    assert [(u.username, u.is_admin) for u in users] == [("boot", True)]
    assert auth.verify_password("bootpass", users[0].password_hash)


def test_bootstrap_admin_skipped_without_credentials(db, monkeypatch):
    monkeypatch.setattr(main.config, "ADMIN_USERNAME", "")
    main.seed_admin(db)
    assert crud.count_users(db) == 0
