"""OIDC client for the authorization code flow against one provider."""

import logging
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any
from urllib.parse import urlencode

import httpx

from openid_login.exceptions import TokenExchangeError, UserInfoFetchError
from openid_login.providers import ProviderSettings

logger = logging.getLogger(__name__)


@dataclass
class TokenResponse:
    """Token response from the provider's token endpoint."""

    access_token: str
    id_token: str
    token_type: str
    expires_in: int | None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


def _error_detail(response: httpx.Response) -> str:
    """Best-effort provider error message from an OAuth error body."""
    try:
        error_data = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(error_data, dict):
        detail = error_data.get("error_description") or error_data.get("error")
        if detail:
            return str(detail)
    return f"HTTP {response.status_code}"


class OIDCClient:
    """OIDC client for one identity provider.

    Handles the provider-facing half of the login:
    1. Build the authorization URL for the login redirect
    2. Exchange the authorization code for tokens
    3. Fetch the user profile with the access token

    Stateless apart from configuration; safe to share between threads.
    """

    def __init__(self, provider: ProviderSettings, http_timeout: float = 5.0) -> None:
        """Initialize OIDC client.

        Args:
            provider: Provider descriptor with endpoints and client credentials
            http_timeout: Timeout in seconds for every outbound call
        """
        self._provider = provider
        self._http_timeout = http_timeout

    @property
    def provider(self) -> ProviderSettings:
        return self._provider

    def generate_authorization_url(self, state: str, nonce: str) -> str:
        """Build the provider authorization URL for a new login flow."""
        params: dict[str, str] = {
            "response_type": self._provider.response_type,
            "client_id": self._provider.client_id,
            "redirect_uri": self._provider.redirect_uri or "",
            "nonce": nonce,
            "scope": self._provider.scope,
            "state": state,
        }
        params.update(self._provider.extra_authorization_params)

        authorization_url = f"{self._provider.authorization_endpoint}?{urlencode(params)}"

        logger.info(
            "Generated %s authorization URL state=%s",
            self._provider.name,
            state[:8] + "...",
        )

        return authorization_url

    def exchange_code_for_tokens(self, code: str) -> TokenResponse:
        """Exchange authorization code for tokens.

        Args:
            code: Authorization code from callback

        Returns:
            TokenResponse carrying the ID token and access token

        Raises:
            TokenExchangeError: If the request fails, the provider answers
                with a non-200 status, or the body lacks the tokens
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self._provider.client_id,
            "client_secret": self._provider.client_secret or "",
            "redirect_uri": self._provider.redirect_uri or "",
        }

        try:
            response = httpx.post(
                self._provider.token_endpoint,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self._http_timeout,
            )
        except httpx.HTTPError as e:
            logger.error("Token request to %s failed: %s", self._provider.name, str(e))
            raise TokenExchangeError(f"Failed to request token: {e}") from e

        if response.status_code != HTTPStatus.OK:
            error_detail = _error_detail(response)
            logger.error(
                "Token exchange with %s failed with status %s: %s",
                self._provider.name,
                response.status_code,
                error_detail,
            )
            raise TokenExchangeError(f"Failed to exchange code: {error_detail}")

        try:
            token_data = response.json()
        except ValueError as e:
            raise TokenExchangeError("Token response is not valid JSON") from e
        if not isinstance(token_data, dict):
            raise TokenExchangeError("Token response is not a JSON object")

        access_token = token_data.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise TokenExchangeError("Token response missing access_token")

        id_token = token_data.get("id_token")
        if not isinstance(id_token, str) or not id_token:
            raise TokenExchangeError("Token response missing id_token")

        expires_in = token_data.get("expires_in")

        logger.info(
            "Successfully exchanged authorization code with %s", self._provider.name
        )

        return TokenResponse(
            access_token=access_token,
            id_token=id_token,
            token_type=str(token_data.get("token_type", "Bearer")),
            expires_in=expires_in if isinstance(expires_in, int) else None,
            raw=token_data,
        )

    def fetch_user_info(self, access_token: str) -> dict[str, Any]:
        """Fetch the user profile from the provider's user-info endpoint.

        Raises:
            UserInfoFetchError: On transport failure, non-2xx status, or a
                body that is not a JSON object
        """
        try:
            response = httpx.get(
                self._provider.userinfo_endpoint,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self._http_timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("User info request to %s failed: %s", self._provider.name, str(e))
            raise UserInfoFetchError(f"Failed to get user info: {e}") from e

        try:
            user_info = response.json()
        except ValueError as e:
            raise UserInfoFetchError("User info response is not valid JSON") from e
        if not isinstance(user_info, dict):
            raise UserInfoFetchError("User info response is not a JSON object")

        return user_info
