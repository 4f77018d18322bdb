from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from zenith import create_app
from zenith.extensions import db
from zenith.models import User


TEST_SETTINGS: dict[str, Any] = {
    "TESTING": True,
    "JWT_SECRET_KEY": "test-secret-key-at-least-32-bytes-long",
    "STRIPE_SECRET_KEY": "sk_test_dummy",
    "STRIPE_PRICE_ID": "price_test_dummy",
    "STRIPE_WEBHOOK_SECRET": "whsec_test_dummy",
    "MAX_UPLOAD_SIZE_BYTES": 5 * 1024 * 1024,
    "FRONTEND_ORIGINS": ["http://localhost:5173"],
    "FRONTEND_ORIGIN": "http://localhost:5173",
}


class FakePaymentProvider:
    """Stands in for StripeCheckout; records calls and returns canned data."""

    def __init__(self) -> None:
        self.webhooks_enabled = True
        self.checkout_users: list[str] = []
        self.checkout_error: Exception | None = None
        self.event: dict[str, Any] | None = None

    def create_checkout_session(self, user: User) -> str:
        if self.checkout_error is not None:
            raise self.checkout_error
        self.checkout_users.append(user.id)
        return "https://checkout.stripe.test/session/cs_test_123"

    def parse_webhook(self, payload: bytes, signature: str) -> dict[str, Any]:
        if signature != "valid":
            raise ValueError("bad signature")
        assert self.event is not None
        return self.event


@pytest.fixture
def app(tmp_path: Path):
    db_path = tmp_path / "test.db"
    storage_path = tmp_path / "storage"

    app = create_app(
        {
            **TEST_SETTINGS,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path}",
            "STORAGE_ROOT": str(storage_path),
        }
    )
    app.extensions["payment_provider"] = FakePaymentProvider()

    with app.app_context():
        for email, password in (("alice@example.com", "alicepass123"), ("bob@example.com", "bobpass123")):
            user = User(email=email)
            user.set_password(password)
            db.session.add(user)
        db.session.commit()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def alice_headers(client) -> dict[str, str]:
    login = client.post("/login", json={"email": "alice@example.com", "password": "alicepass123"})
    assert login.status_code == 200
    return {"Authorization": f"Bearer {login.get_json()['token']}"}


@pytest.fixture
def bob_headers(client) -> dict[str, str]:
    login = client.post("/login", json={"email": "bob@example.com", "password": "bobpass123"})
    assert login.status_code == 200
    return {"Authorization": f"Bearer {login.get_json()['token']}"}
