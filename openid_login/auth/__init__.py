"""ID token verification and provider-facing OIDC client."""

from openid_login.auth.keys import JsonWebKey, KeyResolver, KeySet
from openid_login.auth.oidc_client import OIDCClient, TokenResponse
from openid_login.auth.token import CompactToken, decode
from openid_login.auth.verifier import IdTokenVerifier, VerificationContext

__all__ = [
    "CompactToken",
    "decode",
    "JsonWebKey",
    "KeySet",
    "KeyResolver",
    "IdTokenVerifier",
    "VerificationContext",
    "OIDCClient",
    "TokenResponse",
]
