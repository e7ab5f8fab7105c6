"""Bearer-token verification on protected endpoints."""

from __future__ import annotations

import datetime

import jwt
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi.testclient import TestClient

from certsvc.services import token_service
from tests.conftest import auth


def test_missing_token_is_401(client: TestClient) -> None:
    assert client.get("/v1/certificates").status_code == 401


def test_garbage_token_is_401(client: TestClient) -> None:
    resp = client.get("/v1/certificates", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_token_signed_with_other_key_is_401(client: TestClient) -> None:
    other_key = ec.generate_private_key(ec.SECP256R1())
    now = datetime.datetime.now(datetime.UTC)
    forged = jwt.encode(
        {
            "sub": "mallory",
            "iss": token_service.ISSUER,
            "aud": token_service.AUDIENCE,
            "exp": now + datetime.timedelta(minutes=5),
            "iat": now,
            "jti": "x",
        },
        other_key,
        algorithm="ES256",
    )
    resp = client.get("/v1/certificates", headers={"Authorization": f"Bearer {forged}"})
    assert resp.status_code == 401


def test_expired_token_is_401(client: TestClient) -> None:
    now = datetime.datetime.now(datetime.UTC)
    expired = jwt.encode(
        {
            "sub": "alice",
            "iss": token_service.ISSUER,
            "aud": token_service.AUDIENCE,
            "exp": now - datetime.timedelta(minutes=1),
            "iat": now - datetime.timedelta(minutes=20),
            "jti": "x",
        },
        token_service._private_key,
        algorithm="ES256",
    )
    resp = client.get("/v1/certificates", headers={"Authorization": f"Bearer {expired}"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_valid_token_is_accepted(client: TestClient) -> None:
    assert client.get("/v1/certificates", headers=auth()).status_code == 200
