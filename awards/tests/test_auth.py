from collections.abc import Iterator
from typing import TYPE_CHECKING

import pytest
from cryptography.hazmat.primitives import serialization
from jose import jwt

from awards.api.routes.auth import is_blocked_email, refresh_token_store
from awards.core.config import get_settings
from awards.main import app

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

ADMIN_EMAIL = "admin@example.com"
VOTER_EMAIL = "someone@example.com"


@pytest.fixture()
def client() -> Iterator["TestClient"]:
    pytest.importorskip("fastapi")
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_refresh_store() -> None:
    refresh_token_store.reset()
    yield
    refresh_token_store.reset()


def _identity_token(email: str, *, secret: str | None = None) -> str:
    settings = get_settings()
    return jwt.encode(
        {"email": email, "name": "Test User"},
        secret or settings.identity_provider_secret,
        algorithm=settings.identity_provider_algorithm,
    )


def _public_key() -> str:
    settings = get_settings()
    private_key = serialization.load_pem_private_key(settings.jwt_private_key.encode("utf-8"), password=None)
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")


def _sign_in(client: "TestClient", email: str) -> tuple[str, str]:
    response = client.post("/api/auth/callback", json={"id_token": _identity_token(email)})
    assert response.status_code == 200
    body = response.json()
    return body["access_token"], body["refresh_token"]


def test_callback_returns_signed_tokens(client: "TestClient") -> None:
    access_token, refresh_token = _sign_in(client, "Admin@Example.com")

    settings = get_settings()
    access_payload = jwt.decode(access_token, _public_key(), algorithms=[settings.jwt_algorithm])
    refresh_payload = jwt.decode(refresh_token, _public_key(), algorithms=[settings.jwt_algorithm])

    assert access_payload["sub"] == ADMIN_EMAIL
    assert access_payload["type"] == "access"
    assert access_payload["role"] == "ADMIN"
    assert refresh_payload["type"] == "refresh"


def test_callback_rejects_forged_identity_token(client: "TestClient") -> None:
    response = client.post(
        "/api/auth/callback",
        json={"id_token": _identity_token(VOTER_EMAIL, secret="not-the-secret")},
    )
    assert response.status_code == 401


def test_callback_rejects_blocked_domains(client: "TestClient") -> None:
    response = client.post(
        "/api/auth/callback", json={"id_token": _identity_token("intruder@mail.blocked.example")}
    )
    assert response.status_code == 403


def test_blocked_domain_matching() -> None:
    blocked = frozenset({"blocked.example"})
    assert is_blocked_email("a@blocked.example", blocked)
    assert is_blocked_email("a@eu.blocked.example", blocked)
    assert not is_blocked_email("a@notblocked.example", blocked)


def test_refresh_rotates_and_blacklists_tokens(client: "TestClient") -> None:
    _, refresh_token = _sign_in(client, VOTER_EMAIL)

    first_response = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert first_response.status_code == 200
    new_refresh_token = first_response.json()["refresh_token"]

    # Reusing the same refresh token should be rejected because of rotation
    second_response = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert second_response.status_code == 401

    third_response = client.post("/api/auth/refresh", json={"refresh_token": new_refresh_token})
    assert third_response.status_code == 200


def test_me_reports_role(client: "TestClient") -> None:
    admin_token, _ = _sign_in(client, ADMIN_EMAIL)
    voter_token, _ = _sign_in(client, VOTER_EMAIL)

    admin = client.get("/api/auth/me", headers={"Authorization": f"Bearer {admin_token}"})
    voter = client.get("/api/auth/me", headers={"Authorization": f"Bearer {voter_token}"})

    assert admin.json() == {"email": ADMIN_EMAIL, "role": "ADMIN"}
    assert voter.json() == {"email": VOTER_EMAIL, "role": "VOTER"}


def test_voter_cannot_reach_admin_routes(client: "TestClient") -> None:
    access_token, _ = _sign_in(client, VOTER_EMAIL)

    response = client.get("/api/editions/", headers={"Authorization": f"Bearer {access_token}"})
    assert response.status_code == 403


def test_missing_token_is_rejected(client: "TestClient") -> None:
    assert client.get("/api/auth/me").status_code in (401, 403)
