"""
Authentication API tests.

Verifies:
- Login returns a token for staff and portal customers
- Every protected endpoint answers a uniform 401 without a valid token
- Logout revokes immediately and is idempotent
"""

import pytest

from conftest import PASSWORD, auth_headers, get_auth_token


PROTECTED = [
    ("GET", "/api/auth/me"),
    ("POST", "/api/auth/logout-all"),
    ("POST", "/api/auth/change-password"),
    ("GET", "/api/paint-orders"),
    ("POST", "/api/paint-orders"),
    ("GET", "/api/paint-orders/1"),
    ("PATCH", "/api/paint-orders/1/approve"),
    ("GET", "/api/service-requests"),
    ("PATCH", "/api/service-requests/1/assign"),
    ("GET", "/api/users"),
    ("POST", "/api/users"),
    ("GET", "/api/customers"),
    ("PUT", "/api/customers/1/portal-login"),
    ("GET", "/api/paint-types"),
    ("POST", "/api/machines"),
]


class TestLogin:

    def test_staff_login(self, client, tech):
        resp = client.post("/api/auth/login", json={"username": "tech7", "password": PASSWORD})
        assert resp.status_code == 200
        body = resp.json
        assert len(body["token"]) == 64
        assert body["user"]["username"] == "tech7"
        assert body["user"]["role"] == "user"
        assert "password_hash" not in body["user"]
        assert body["expires_at"].endswith("Z")

    def test_customer_login(self, client, customer):
        resp = client.post("/api/auth/login", json={"username": "acme", "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json["user"]["role"] == "customer"
        assert resp.json["user"]["principal_type"] == "customer"

    def test_wrong_password_and_unknown_user_look_the_same(self, client, tech):
        wrong = client.post("/api/auth/login", json={"username": "tech7", "password": "WrongPassword1"})
        unknown = client.post("/api/auth/login", json={"username": "ghost", "password": PASSWORD})
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.json == unknown.json == {"error": "Invalid credentials", "kind": "InvalidCredentials"}

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/login", json={"username": "tech7"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("body", [
        {"username": 123, "password": PASSWORD},
        {"username": "tech7", "password": ["Password123"]},
        ["tech7", PASSWORD],
    ])
    def test_malformed_credentials(self, client, tech, body):
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 400
        assert resp.json["kind"] == "ValidationError"


class TestUnauthenticatedAccess:

    @pytest.mark.parametrize("method,path", PROTECTED)
    def test_requires_auth(self, client, db_session, method, path):
        resp = client.open(path, method=method, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json == {"error": "Authentication required", "kind": "SessionInvalid"}

    @pytest.mark.parametrize("header", ["Bearer nope", "Basic abc", "Bearer "])
    def test_bad_header(self, client, db_session, header):
        resp = client.get("/api/auth/me", headers={"Authorization": header})
        assert resp.status_code == 401
        assert resp.json["error"] == "Authentication required"


class TestSessionLifecycle:

    def test_me(self, client, tech_headers):
        resp = client.get("/api/auth/me", headers=tech_headers)
        assert resp.status_code == 200
        assert resp.json["user"]["username"] == "tech7"

    def test_logout_revokes_and_is_idempotent(self, client, tech):
        headers = auth_headers(get_auth_token(client, "tech7"))

        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401
        assert client.post("/api/auth/logout", headers=headers).status_code == 200

    def test_logout_without_token(self, client, db_session):
        assert client.post("/api/auth/logout").status_code == 401

    def test_logout_all(self, client, tech):
        first = auth_headers(get_auth_token(client, "tech7"))
        second = auth_headers(get_auth_token(client, "tech7"))

        resp = client.post("/api/auth/logout-all", headers=first)
        assert resp.status_code == 200
        assert resp.json["revoked"] == 2
        assert client.get("/api/auth/me", headers=second).status_code == 401

    def test_change_password(self, client, tech_headers):
        resp = client.post(
            "/api/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "Changed123"},
            headers=tech_headers,
        )
        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=tech_headers).status_code == 401
        assert get_auth_token(client, "tech7", "Changed123") is not None

    def test_change_password_wrong_current(self, client, tech_headers):
        resp = client.post(
            "/api/auth/change-password",
            json={"current_password": "WrongPassword1", "new_password": "Changed123"},
            headers=tech_headers,
        )
        assert resp.status_code == 401
        assert resp.json["kind"] == "InvalidCredentials"

    def test_customer_cannot_change_own_password(self, client, customer_headers):
        resp = client.post(
            "/api/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "Changed123"},
            headers=customer_headers,
        )
        assert resp.status_code == 403

    def test_deactivated_user_token_dies(self, client, admin_headers, tech):
        tech_token = auth_headers(get_auth_token(client, "tech7"))
        resp = client.post(f"/api/users/{tech.id}/deactivate", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get("/api/auth/me", headers=tech_token).status_code == 401


def test_health(client, db_session):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json["status"] == "healthy"


def test_cors_only_for_configured_origins(app, client, db_session, monkeypatch):
    monkeypatch.setitem(app.config, "CORS_ORIGINS", ["https://desk.example.com"])

    allowed = client.get("/api/health", headers={"Origin": "https://desk.example.com"})
    assert allowed.headers["Access-Control-Allow-Origin"] == "https://desk.example.com"

    other = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
    assert "Access-Control-Allow-Origin" not in other.headers
