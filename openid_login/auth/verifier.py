"""ID token verification: signature first, then claims."""

import logging
import time
from dataclasses import dataclass

from prometheus_client import Counter, Histogram

from openid_login.auth.claims import validate_claims
from openid_login.auth.keys import KeyResolver
from openid_login.auth.signature import check_algorithm, verify_signature
from openid_login.auth.token import CompactToken
from openid_login.exceptions import IdTokenError

ID_TOKEN_VERIFICATION_TOTAL = Counter(
    "id_token_verification_total",
    "Total ID token verifications by outcome",
    ["outcome"],
)
ID_TOKEN_VERIFICATION_DURATION_SECONDS = Histogram(
    "id_token_verification_duration_seconds",
    "ID token verification duration in seconds",
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationContext:
    """Expected values for one verification; built per callback and discarded."""

    expected_audience: str
    expected_issuer: str
    jwks_uri: str
    now: float
    leeway: float = 0


class IdTokenVerifier:
    """Runs the verification checks in a fixed order and stops at the first failure.

    Order: algorithm and signature, audience, issuer, expiration. Integrity
    is established before any claim value is looked at, so a forged token is
    reported as ``SignatureInvalid`` whatever its claims say.

    Holds no per-request state and may be shared across threads.
    """

    def __init__(self, key_resolver: KeyResolver) -> None:
        self._key_resolver = key_resolver

    def verify(self, token: CompactToken, context: VerificationContext) -> None:
        """Verify ``token`` against ``context``.

        Raises:
            IdTokenError: The first failed check (see ``openid_login.exceptions``)
        """
        start_time = time.perf_counter()
        try:
            check_algorithm(token)
            key = self._key_resolver.resolve_key(context.jwks_uri, token.key_id)
            verify_signature(token, key)
            validate_claims(
                token.payload,
                expected_audience=context.expected_audience,
                expected_issuer=context.expected_issuer,
                now=context.now,
                leeway=context.leeway,
            )
        except IdTokenError as e:
            ID_TOKEN_VERIFICATION_TOTAL.labels(outcome=e.error_code.lower()).inc()
            logger.warning("ID token verification failed: %s", e.message)
            raise
        finally:
            ID_TOKEN_VERIFICATION_DURATION_SECONDS.observe(
                max(time.perf_counter() - start_time, 0.0)
            )

        ID_TOKEN_VERIFICATION_TOTAL.labels(outcome="success").inc()
        logger.info("ID token verified for issuer=%s", context.expected_issuer)
