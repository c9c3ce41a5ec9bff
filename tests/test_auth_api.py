from storefront.extensions import db
from storefront.model import RefreshToken, User


def login(client, email, password="secret123"):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def test_login_and_me(client, admin):
    r = login(client, "ADMIN@test.local ")
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["user"]["role"] == "admin"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {data['token']}"})
    assert me.status_code == 200
    assert me.get_json()["data"]["user"]["email"] == "admin@test.local"


def test_login_failures(client, admin):
    assert login(client, "admin@test.local", "wrong").status_code == 401
    assert client.post("/api/auth/login", json={"email": "admin@test.local"}).status_code == 400


def test_refresh_rotates_token(client, admin):
    old = login(client, "admin@test.local").get_json()["data"]["refresh_token"]

    r = client.post("/api/auth/refresh", json={"refresh_token": old})
    assert r.status_code == 200
    new = r.get_json()["data"]["refresh_token"]
    assert new != old
    assert RefreshToken.query.filter_by(token=old).first() is None

    # single use
    assert client.post("/api/auth/refresh", json={"refresh_token": old}).status_code == 401
    assert client.post("/api/auth/refresh", json={}).status_code == 400


def test_manager_creates_and_lists_plain_users(client, manager, admin, staff_headers):
    r = client.post("/api/auth/users", json={"email": "clerk@test.local", "password": "secret123"},
                    headers=staff_headers)
    assert r.status_code == 201
    assert r.get_json()["data"]["user"]["role"] == "user"

    r = client.post("/api/auth/users", json={"email": "boss@test.local", "password": "secret123", "role": "admin"},
                    headers=staff_headers)
    assert r.status_code == 403

    users = client.get("/api/auth/users", headers=staff_headers).get_json()["data"]["users"]
    assert [u["email"] for u in users] == ["clerk@test.local"]


def test_admin_creates_staff_and_duplicates_conflict(client, admin_headers):
    body = {"email": "ops@test.local", "password": "secret123", "role": "manager"}
    assert client.post("/api/auth/users", json=body, headers=admin_headers).status_code == 201
    assert client.post("/api/auth/users", json=body, headers=admin_headers).status_code == 409
    assert client.post("/api/auth/users", json={"email": "x@test.local", "password": "123"},
                       headers=admin_headers).status_code == 400


def test_role_changes(client, admin, manager, admin_headers):
    r = client.patch(f"/api/auth/users/{manager.id}/role", json={"role": "admin"}, headers=admin_headers)
    assert r.status_code == 200
    assert db.session.get(User, manager.id).role == "admin"

    assert client.patch(f"/api/auth/users/{admin.id}/role", json={"role": "wizard"},
                        headers=admin_headers).status_code == 400
    assert client.patch("/api/auth/users/999/role", json={"role": "user"}, headers=admin_headers).status_code == 404


def test_last_admin_cannot_be_demoted(client, admin, admin_headers):
    r = client.patch(f"/api/auth/users/{admin.id}/role", json={"role": "user"}, headers=admin_headers)
    assert r.status_code == 400
    assert "last admin" in r.get_json()["message"]
