"""Pytest configuration and fixtures."""

import time
from collections.abc import Callable
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from flask import Flask
from testing_utils import (
    GOOGLE_CLIENT_ID,
    SALESFORCE_CLIENT_ID,
    SALESFORCE_DOMAIN,
    TEST_KEY_ID,
    jwk_for,
)

from openid_login import create_app
from openid_login.config import Settings
from openid_login.providers import google_provider, salesforce_provider


def _build_test_settings() -> Settings:
    """Construct base Settings object for tests."""
    google = google_provider(
        client_id=GOOGLE_CLIENT_ID,
        client_secret="test-google-secret",
        redirect_uri="http://localhost:8080/google/callback",
    )
    salesforce = salesforce_provider(
        domain=SALESFORCE_DOMAIN,
        client_id=SALESFORCE_CLIENT_ID,
        client_secret="test-salesforce-secret",
        redirect_uri="http://localhost:8080/salesforce/callback",
    )
    return Settings(
        flask_env="testing",
        debug=True,
        http_timeout_seconds=5.0,
        jwks_cache_ttl_seconds=0,
        flow_state_ttl_seconds=600,
        clock_skew_seconds=0,
        providers={google.name: google, salesforce.name: salesforce},
    )


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with both providers enabled."""
    return _build_test_settings()


@pytest.fixture
def app(test_settings: Settings) -> Flask:
    """Create Flask app for testing."""
    return create_app(test_settings)


@pytest.fixture
def client(app: Flask):
    """Create test client."""
    return app.test_client()


# ---------------------------------------------------------------------------
# Signing key and token fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def private_key() -> RSAPrivateKey:
    """RSA key pair standing in for the provider's signing key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key() -> RSAPrivateKey:
    """A second key pair the provider never published."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwks_document(private_key: RSAPrivateKey) -> dict[str, Any]:
    """JWKS document publishing the test signing key."""
    return {"keys": [jwk_for(private_key)]}


@pytest.fixture
def make_claims() -> Callable[..., dict[str, Any]]:
    """Factory for a valid Google ID token payload; keyword arguments override claims."""

    def _make(**overrides: Any) -> dict[str, Any]:
        now = int(time.time())
        claims: dict[str, Any] = {
            "iss": "https://accounts.google.com",
            "aud": GOOGLE_CLIENT_ID,
            "sub": "1234567890",
            "email": "test@example.com",
            "name": "Test User",
            "iat": now,
            "exp": now + 3600,
        }
        claims.update(overrides)
        return claims

    return _make


@pytest.fixture
def sign_token(private_key: RSAPrivateKey) -> Callable[..., str]:
    """Factory fixture to sign ID tokens with the test key."""

    def _sign(
        claims: dict[str, Any],
        key: RSAPrivateKey | None = None,
        kid: str = TEST_KEY_ID,
        algorithm: str = "RS256",
    ) -> str:
        return jwt.encode(
            claims,
            key or private_key,
            algorithm=algorithm,
            headers={"kid": kid},
        )

    return _sign
