"""Generic OpenID Connect login flow, parameterized by provider descriptor."""

import hmac
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from prometheus_client import Counter

from openid_login.auth.oidc_client import OIDCClient
from openid_login.auth.token import decode
from openid_login.auth.verifier import IdTokenVerifier, VerificationContext
from openid_login.config import Settings
from openid_login.exceptions import (
    LoginFlowException,
    NonceMismatch,
    ProviderNotFound,
    StateMismatch,
)
from openid_login.services.flow_state import FlowStateStore

LOGIN_TOTAL = Counter(
    "login_total",
    "Total completed login callbacks by provider and outcome",
    ["provider", "outcome"],
)

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Verified identity from a completed login."""

    provider: str
    claims: dict[str, Any]
    user_info: dict[str, Any]

    @property
    def subject(self) -> str | None:
        sub = self.claims.get("sub")
        return sub if isinstance(sub, str) else None

    @property
    def email(self) -> str | None:
        email = self.claims.get("email", self.user_info.get("email"))
        return email if isinstance(email, str) else None

    @property
    def name(self) -> str | None:
        name = self.claims.get("name", self.user_info.get("name"))
        return name if isinstance(name, str) else None


class LoginFlowService:
    """Runs login and callback for every configured provider.

    The callback sequence is fixed: state check, code exchange, ID token
    decode and verification, nonce check, user-info fetch. Any failure ends
    the flow; user info is never fetched for an unverified token.
    """

    def __init__(
        self,
        settings: Settings,
        verifier: IdTokenVerifier,
        state_store: FlowStateStore,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._verifier = verifier
        self._state_store = state_store
        self._clock = clock
        self._clients: dict[str, OIDCClient] = {
            name: OIDCClient(provider, http_timeout=settings.http_timeout_seconds)
            for name, provider in settings.providers.items()
        }
        logger.info(
            "LoginFlowService initialized with providers: %s",
            ", ".join(sorted(self._clients)) or "none",
        )

    @property
    def flow_ttl_seconds(self) -> float:
        return self._state_store.ttl_seconds

    def get_client(self, provider_name: str) -> OIDCClient:
        """Return the client for ``provider_name``.

        Raises:
            ProviderNotFound: If the provider is unknown or not configured
        """
        client = self._clients.get(provider_name)
        if client is None:
            raise ProviderNotFound(provider_name)
        return client

    def begin_login(self, provider_name: str) -> tuple[str, str]:
        """Start a login; returns ``(authorization_url, flow_id)``."""
        client = self.get_client(provider_name)
        flow_id, flow = self._state_store.begin(provider_name)
        return client.generate_authorization_url(flow.state, flow.nonce), flow_id

    def complete_login(
        self,
        provider_name: str,
        flow_id: str | None,
        code: str,
        state: str,
    ) -> LoginResult:
        """Finish a login from the provider callback.

        Raises:
            ProviderNotFound: Unknown provider
            StateMismatch: No live flow, a flow for another provider, or a
                ``state`` that differs from the one issued at login
            TokenExchangeError: The token endpoint call failed
            IdTokenError: The ID token failed decoding or verification
            NonceMismatch: The ID token was not issued for this flow
            UserInfoFetchError: The user-info endpoint call failed
        """
        client = self.get_client(provider_name)
        try:
            result = self._complete_login(client, provider_name, flow_id, code, state)
        except LoginFlowException as e:
            LOGIN_TOTAL.labels(provider=provider_name, outcome=e.error_code.lower()).inc()
            raise
        LOGIN_TOTAL.labels(provider=provider_name, outcome="success").inc()
        return result

    def _complete_login(
        self,
        client: OIDCClient,
        provider_name: str,
        flow_id: str | None,
        code: str,
        state: str,
    ) -> LoginResult:
        flow = self._state_store.consume(flow_id) if flow_id else None
        if flow is None:
            logger.warning("Callback for %s without a live login flow", provider_name)
            raise StateMismatch("Login flow not found or expired")
        if flow.provider != provider_name:
            logger.warning(
                "Callback for %s used a flow started for %s", provider_name, flow.provider
            )
            raise StateMismatch()
        if not hmac.compare_digest(state.encode(), flow.state.encode()):
            logger.warning("Invalid state for %s: %s", provider_name, state[:8] + "...")
            raise StateMismatch()

        tokens = client.exchange_code_for_tokens(code)

        provider = client.provider
        token = decode(tokens.id_token)
        self._verifier.verify(
            token,
            VerificationContext(
                expected_audience=provider.client_id,
                expected_issuer=provider.issuer,
                jwks_uri=provider.jwks_uri,
                now=self._clock(),
                leeway=self._settings.clock_skew_seconds,
            ),
        )

        nonce = token.payload.get("nonce")
        if not isinstance(nonce, str) or not hmac.compare_digest(
            nonce.encode(), flow.nonce.encode()
        ):
            logger.warning("ID token nonce mismatch for %s", provider_name)
            raise NonceMismatch()

        user_info = client.fetch_user_info(tokens.access_token)

        logger.info(
            "Login completed for provider=%s subject=%s",
            provider_name,
            token.payload.get("sub"),
        )

        return LoginResult(
            provider=provider_name,
            claims=token.payload,
            user_info=user_info,
        )
