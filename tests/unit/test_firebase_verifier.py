"""Firebase ID token verification with a locally generated RSA key (no network)."""

import time

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import HTTPException

from hiremind_backend.app.auth import firebase
from hiremind_backend.app.security.base import identity_from_claims, verify_credential
from hiremind_backend.app.schemas.identity import ProviderKind

PROJECT = "hiremind-auth"


class _FakeSigningKey:
    def __init__(self, key):
        self.key = key


class _FakeJWKClient:
    def __init__(self, public_key):
        self._key = public_key

    def get_signing_key_from_jwt(self, token):
        return _FakeSigningKey(self._key)


@pytest.fixture(scope="module")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(autouse=True)
def _jwks(monkeypatch, rsa_key):
    monkeypatch.setattr(firebase, "_jwks_client", lambda: _FakeJWKClient(rsa_key.public_key()))
    monkeypatch.setattr(firebase, "FIREBASE_PROJECT_ID", PROJECT)


def _id_token(key, **overrides) -> str:
    now = int(time.time())
    claims = {
        "iss": f"https://securetoken.google.com/{PROJECT}",
        "aud": PROJECT,
        "sub": "fb-uid-1",
        "user_id": "fb-uid-1",
        "iat": now,
        "auth_time": now,
        "exp": now + 3600,
        "email": "alice@example.com",
        "email_verified": True,
        "name": "Alice",
        "picture": "https://lh3.googleusercontent.com/a",
        "firebase": {"sign_in_provider": "google.com"},
    }
    claims.update(overrides)
    return jwt.encode(claims, key, algorithm="RS256", headers={"kid": "k1"})


def test_valid_id_token(rsa_key):
    claims = firebase.verify_firebase_id_token(_id_token(rsa_key))
    assert claims["sub"] == "fb-uid-1"

    identity = identity_from_claims(claims)
    assert identity.provider is ProviderKind.GOOGLE
    assert identity.display_name == "Alice"
    assert identity.email_verified is True


def test_expired_id_token(rsa_key):
    tok = _id_token(rsa_key, exp=int(time.time()) - 3600, iat=int(time.time()) - 7200)
    with pytest.raises(HTTPException) as ei:
        firebase.verify_firebase_id_token(tok)
    assert ei.value.status_code == 401
    assert ei.value.detail == "Token expired. Please login again."


@pytest.mark.parametrize(
    "overrides",
    [
        {"aud": "some-other-project"},
        {"iss": "https://securetoken.google.com/some-other-project"},
        {"sub": ""},
    ],
)
def test_untrusted_claims_are_rejected(rsa_key, overrides):
    with pytest.raises(HTTPException) as ei:
        firebase.verify_firebase_id_token(_id_token(rsa_key, **overrides))
    assert ei.value.status_code == 401
    assert ei.value.detail == "Invalid token"


def test_wrong_signing_key_is_rejected():
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with pytest.raises(HTTPException) as ei:
        firebase.verify_firebase_id_token(_id_token(other))
    assert ei.value.detail == "Invalid token"


def test_hs256_token_is_rejected_in_firebase_mode():
    tok = jwt.encode({"sub": "x"}, "secret", algorithm="HS256")
    with pytest.raises(HTTPException) as ei:
        firebase.verify_firebase_id_token(tok)
    assert ei.value.status_code == 401


def test_missing_project_is_server_error(monkeypatch, rsa_key):
    monkeypatch.setattr(firebase, "FIREBASE_PROJECT_ID", "")
    with pytest.raises(HTTPException) as ei:
        firebase.verify_firebase_id_token(_id_token(rsa_key))
    assert ei.value.status_code == 500


def test_selector_uses_firebase_mode(monkeypatch, rsa_key):
    monkeypatch.setenv("AUTH_MODE", "FIREBASE")
    identity = verify_credential(_id_token(rsa_key, firebase={"sign_in_provider": "password"}))
    assert identity.subject_id == "fb-uid-1"
    assert identity.provider is ProviderKind.PASSWORD


def test_selector_rejects_unknown_mode(monkeypatch, rsa_key):
    monkeypatch.setenv("AUTH_MODE", "OIDC")
    with pytest.raises(HTTPException) as ei:
        verify_credential(_id_token(rsa_key))
    assert ei.value.status_code == 500
