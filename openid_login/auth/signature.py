"""RS256 signature verification for compact tokens."""

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey, RSAPublicNumbers
from jwt.algorithms import RSAAlgorithm

from openid_login.auth.keys import JsonWebKey
from openid_login.auth.token import CompactToken
from openid_login.exceptions import AlgorithmNotAllowed, SignatureInvalid

ALLOWED_ALGORITHM = "RS256"

_rs256 = RSAAlgorithm(RSAAlgorithm.SHA256)


def check_algorithm(token: CompactToken) -> None:
    """Reject tokens that declare anything other than RS256 (including ``none``)."""
    algorithm = token.algorithm
    if algorithm != ALLOWED_ALGORITHM:
        raise AlgorithmNotAllowed(algorithm)


def load_public_key(key: JsonWebKey) -> RSAPublicKey:
    """Rebuild an RSA public key from its modulus and exponent.

    Raises:
        SignatureInvalid: If the numbers do not form a usable RSA key
    """
    try:
        return RSAPublicNumbers(key.public_exponent, key.modulus).public_key()
    except ValueError as e:
        raise SignatureInvalid(f"Signing key {key.key_id} is not a valid RSA key") from e


def verify_signature(token: CompactToken, key: JsonWebKey) -> None:
    """Check the RSASSA-PKCS1-v1_5 / SHA-256 signature over ``signed_input``.

    Raises:
        SignatureInvalid: If the signature does not verify or the key is malformed
    """
    public_key = load_public_key(key)
    if not _rs256.verify(token.signed_input, public_key, token.signature):
        raise SignatureInvalid()
