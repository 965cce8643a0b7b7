"""Audience, issuer and expiration checks on ID token claims."""

import math
from typing import Any

from openid_login.exceptions import (
    AudienceMismatch,
    IssuerMismatch,
    MalformedToken,
    TokenExpired,
)


def string_claim(payload: dict[str, Any], name: str) -> str:
    """Return a required string claim.

    Raises:
        MalformedToken: If the claim is absent or not a string
    """
    value = payload.get(name)
    if not isinstance(value, str):
        raise MalformedToken(f"Token claim '{name}' is missing or not a string")
    return value


def numeric_claim(payload: dict[str, Any], name: str) -> float:
    """Return a required numeric claim (JSON booleans are rejected).

    Raises:
        MalformedToken: If the claim is absent, not a number, or not finite
    """
    value = payload.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedToken(f"Token claim '{name}' is missing or not a number")
    if not math.isfinite(value):
        raise MalformedToken(f"Token claim '{name}' is not a finite number")
    return value


def validate_claims(
    payload: dict[str, Any],
    expected_audience: str,
    expected_issuer: str,
    now: float,
    leeway: float = 0,
) -> None:
    """Check ``aud``, ``iss`` and ``exp`` in that order, stopping at the first failure.

    ``exp`` must be strictly after ``now`` (less ``leeway`` seconds of
    tolerated clock skew). No ``nbf``/``iat``/``nonce`` checks happen here.
    """
    audience = string_claim(payload, "aud")
    if audience != expected_audience:
        raise AudienceMismatch(audience)

    issuer = string_claim(payload, "iss")
    if issuer != expected_issuer:
        raise IssuerMismatch(issuer)

    expires_at = numeric_claim(payload, "exp")
    if expires_at + leeway <= now:
        raise TokenExpired(expires_at)
