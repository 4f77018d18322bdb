from __future__ import annotations

from zenith.models import User


def test_signup_login_and_profile(client):
    signup = client.post("/signup", json={"email": "Carol@Example.com", "password": "carolpass123"})
    assert signup.status_code == 201
    created = signup.get_json()["user"]
    assert created["email"] == "carol@example.com"
    assert "password_hash" not in created

    login = client.post("/login", json={"email": "carol@example.com", "password": "carolpass123"})
    assert login.status_code == 200
    payload = login.get_json()
    assert payload["message"] == "Login successful"

    profile = client.get("/profile", headers={"Authorization": f"Bearer {payload['token']}"})
    assert profile.status_code == 200
    me = profile.get_json()
    assert me["id"] == created["id"]
    assert me["subscription_status"] == "free"


def test_signup_rejects_duplicate_email_case_insensitively(client, app):
    duplicate = client.post("/signup", json={"email": "ALICE@example.com", "password": "whatever123"})
    assert duplicate.status_code == 409
    assert duplicate.get_json()["error"]["code"] == "USER_EXISTS"

    with app.app_context():
        assert User.query.filter_by(email="alice@example.com").count() == 1


def test_signup_validates_input(client):
    missing = client.post("/signup", json={"email": "dave@example.com"})
    assert missing.status_code == 400

    bad_email = client.post("/signup", json={"email": "not-an-email", "password": "davepass123"})
    assert bad_email.status_code == 400
    assert bad_email.get_json()["error"]["code"] == "INVALID_EMAIL"

    short_password = client.post("/signup", json={"email": "dave@example.com", "password": "short"})
    assert short_password.status_code == 400
    assert short_password.get_json()["error"]["code"] == "INVALID_PASSWORD"


def test_login_rejects_bad_credentials(client):
    wrong_password = client.post("/login", json={"email": "alice@example.com", "password": "nope-nope"})
    assert wrong_password.status_code == 401
    assert wrong_password.get_json()["error"]["code"] == "INVALID_CREDENTIALS"

    unknown_user = client.post("/login", json={"email": "nobody@example.com", "password": "whatever123"})
    assert unknown_user.status_code == 401


def test_protected_routes_require_valid_token(client):
    missing = client.get("/profile")
    assert missing.status_code == 401
    assert missing.get_json()["error"]["code"] == "UNAUTHENTICATED"

    garbage = client.get("/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401
    assert garbage.get_json()["error"]["code"] == "INVALID_TOKEN"


def test_health_endpoints(client):
    root = client.get("/")
    assert root.status_code == 200
    assert b"Backend Server is Running!" in root.data

    health = client.get("/health")
    assert health.status_code == 200
    assert health.get_json() == {"status": "ok"}


def test_unknown_route_uses_error_shape(client):
    response = client.get("/no-such-endpoint")
    assert response.status_code == 404
    assert response.get_json()["error"]["code"] == "ROUTE_NOT_FOUND"

    wrong_method = client.put("/login", json={})
    assert wrong_method.status_code == 405
    assert wrong_method.get_json()["error"]["code"] == "METHOD_NOT_ALLOWED"
