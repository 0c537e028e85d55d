"""Tests for authenticated profile and password management."""

from __future__ import annotations

from flask import Flask
from flask.testing import FlaskClient

from conftest import token_from
from mail import DeliveryError
from models import db
from models.user import User

PASSWORD = "Passw0rd!"


def _session(client: FlaskClient, outbox, email: str = "a@x.com", name: str = "A") -> dict:
    """Register, verify and log in; return bearer headers."""

    client.post("/auth/register", json={"name": name, "email": email, "password": PASSWORD})
    client.get(f"/auth/verify-email/{token_from(outbox[-1])}")
    response = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.get_json()['token']}"}


def test_profile_requires_session(app: Flask):
    client = app.test_client()
    assert client.get("/users/profile").status_code == 401
    assert client.put("/users/profile", json={"name": "B"}).status_code == 401
    assert client.put(
        "/users/password", json={"currentPassword": PASSWORD, "newPassword": "NewPassw0rd!"}
    ).status_code == 401


def test_get_profile(client: FlaskClient, outbox):
    headers = _session(client, outbox)
    response = client.get("/users/profile", headers=headers)
    assert response.status_code == 200
    assert response.get_json()["user"]["email"] == "a@x.com"


def test_update_name_keeps_verification(client: FlaskClient, outbox):
    headers = _session(client, outbox)
    sent = len(outbox)

    response = client.put("/users/profile", json={"name": "Ada"}, headers=headers)

    assert response.status_code == 200
    user = response.get_json()["user"]
    assert user["name"] == "Ada"
    assert user["is_verified"] is True
    assert len(outbox) == sent


def test_email_change_requires_reverification(app: Flask, client: FlaskClient, outbox):
    headers = _session(client, outbox)

    response = client.put("/users/profile", json={"email": "New@X.com"}, headers=headers)

    assert response.status_code == 200
    body = response.get_json()
    assert body["user"]["email"] == "new@x.com"
    assert body["user"]["is_verified"] is False
    assert outbox[-1].recipient == "new@x.com"

    # The existing session still identifies the user.
    me = app.test_client().get("/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.get_json()["user"]["is_verified"] is False

    assert client.get(f"/auth/verify-email/{token_from(outbox[-1])}").status_code == 200
    me = app.test_client().get("/auth/me", headers=headers)
    assert me.get_json()["user"]["is_verified"] is True


def test_email_change_to_taken_address_is_rejected(app: Flask, client: FlaskClient, outbox):
    _session(app.test_client(), outbox, email="b@x.com", name="B")
    headers = _session(client, outbox)

    response = client.put("/users/profile", json={"name": "Z", "email": "B@x.com"}, headers=headers)

    assert response.status_code == 400
    assert response.get_json()["kind"] == "duplicate_email"
    with app.app_context():
        user = db.session.execute(db.select(User).filter_by(email="a@x.com")).scalar_one()
        assert user.name == "A"
        assert user.is_verified is True


def test_email_change_delivery_failure(app: Flask, client: FlaskClient, outbox, monkeypatch):
    headers = _session(client, outbox)

    def _fail(recipient, subject, html_body):
        raise DeliveryError("smtp down")

    monkeypatch.setattr(app.extensions["mailer"], "send", _fail)
    response = client.put("/users/profile", json={"email": "new@x.com"}, headers=headers)

    assert response.status_code == 500
    assert response.get_json()["kind"] == "delivery_failed"
    with app.app_context():
        user = db.session.execute(db.select(User)).scalar_one()
        assert user.email == "new@x.com"
        assert user.is_verified is False
        assert user.verification_token_hash is None


def test_change_password(client: FlaskClient, outbox):
    headers = _session(client, outbox)

    response = client.put(
        "/users/password",
        json={"currentPassword": PASSWORD, "newPassword": "NewPassw0rd!"},
        headers=headers,
    )

    assert response.status_code == 200
    assert client.post(
        "/auth/login", json={"email": "a@x.com", "password": PASSWORD}
    ).status_code == 401
    assert client.post(
        "/auth/login", json={"email": "a@x.com", "password": "NewPassw0rd!"}
    ).status_code == 200


def test_change_password_rejects_wrong_current(client: FlaskClient, outbox):
    headers = _session(client, outbox)

    response = client.put(
        "/users/password",
        json={"currentPassword": "Wrong0ne!", "newPassword": "NewPassw0rd!"},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.get_json()["kind"] == "invalid_credential"


def test_change_password_validates_payload(client: FlaskClient, outbox):
    headers = _session(client, outbox)

    missing = client.put("/users/password", json={"currentPassword": PASSWORD}, headers=headers)
    assert missing.status_code == 400
    assert missing.get_json()["kind"] == "validation_error"

    weak = client.put(
        "/users/password",
        json={"currentPassword": PASSWORD, "newPassword": "weak"},
        headers=headers,
    )
    assert weak.status_code == 400
    assert "newPassword" in weak.get_json()["fields"]
