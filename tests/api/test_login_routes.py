"""End-to-end tests for the login and callback HTTP routes."""

from http import HTTPStatus
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from flask.testing import FlaskClient
from testing_utils import (
    GOOGLE_CLIENT_ID,
    SALESFORCE_CLIENT_ID,
    SALESFORCE_DOMAIN,
    mock_response,
    route_by_url,
)

from openid_login.api.auth import FLOW_COOKIE_NAME
from openid_login.providers import GOOGLE_JWKS_URI, GOOGLE_USERINFO_ENDPOINT

USER_INFO = {
    "sub": "1234567890",
    "email": "test@example.com",
    "name": "Test User",
    "picture": "https://example.com/avatar.png",
}


def _start_login(client: FlaskClient, provider: str = "google") -> tuple[str, str]:
    """Hit the login route and return ``(state, nonce)`` from the redirect."""
    response = client.get(f"/{provider}/login")
    assert response.status_code == HTTPStatus.FOUND
    params = parse_qs(urlparse(response.headers["Location"]).query)
    return params["state"][0], params["nonce"][0]


def _token_response(id_token: str) -> MagicMock:
    return mock_response(
        json_data={
            "access_token": "access-abc",
            "id_token": id_token,
            "token_type": "Bearer",
            "expires_in": 3599,
        }
    )


class TestIndex:
    """Tests for the liveness route."""

    def test_index_says_hello(self, client: FlaskClient) -> None:
        """Test that the root route answers with a plain greeting."""
        response = client.get("/")

        assert response.status_code == HTTPStatus.OK
        assert response.get_data(as_text=True) == "hello"


class TestLoginRoute:
    """Tests for GET /<provider>/login."""

    def test_google_login_redirects(self, client: FlaskClient) -> None:
        """Test that login redirects to Google with every authorization parameter."""
        response = client.get("/google/login")

        assert response.status_code == HTTPStatus.FOUND
        location = urlparse(response.headers["Location"])
        params = parse_qs(location.query)
        assert f"{location.scheme}://{location.netloc}{location.path}" == (
            "https://accounts.google.com/o/oauth2/v2/auth"
        )
        assert params["response_type"] == ["code"]
        assert params["client_id"] == [GOOGLE_CLIENT_ID]
        assert params["redirect_uri"] == ["http://localhost:8080/google/callback"]
        assert params["scope"] == ["openid email profile"]
        assert params["access_type"] == ["offline"]
        assert len(params["state"][0]) == 32
        assert len(params["nonce"][0]) == 32

    def test_salesforce_login_redirects(self, client: FlaskClient) -> None:
        """Test that login redirects to the configured Salesforce org."""
        response = client.get("/salesforce/login")

        assert response.status_code == HTTPStatus.FOUND
        location = response.headers["Location"]
        assert location.startswith(f"{SALESFORCE_DOMAIN}/services/oauth2/authorize?")
        assert parse_qs(urlparse(location).query)["client_id"] == [SALESFORCE_CLIENT_ID]

    def test_login_sets_flow_cookie(self, client: FlaskClient) -> None:
        """Test that the flow id is handed to the browser as an HttpOnly cookie."""
        response = client.get("/google/login")

        set_cookie = response.headers["Set-Cookie"]
        assert set_cookie.startswith(f"{FLOW_COOKIE_NAME}=")
        assert "HttpOnly" in set_cookie
        assert "SameSite=Lax" in set_cookie
        assert "Max-Age=600" in set_cookie
        assert client.get_cookie(FLOW_COOKIE_NAME) is not None

    def test_each_login_gets_new_state(self, client: FlaskClient) -> None:
        """Test that state and nonce are not reused across logins."""
        first = _start_login(client)
        second = _start_login(client)

        assert first[0] != second[0]
        assert first[1] != second[1]

    def test_unknown_provider(self, client: FlaskClient) -> None:
        """Test that an unconfigured provider is a 404 with an error code."""
        response = client.get("/github/login")

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.get_json()["code"] == "PROVIDER_NOT_FOUND"


class TestCallbackRoute:
    """Tests for GET /<provider>/callback."""

    def test_successful_google_login(
        self, client: FlaskClient, sign_token, make_claims, jwks_document
    ) -> None:
        """Test the full flow: state, exchange, verification, nonce, user info."""
        state, nonce = _start_login(client)
        id_token = sign_token(make_claims(nonce=nonce))
        routes = {
            GOOGLE_JWKS_URI: mock_response(json_data=jwks_document),
            GOOGLE_USERINFO_ENDPOINT: mock_response(json_data=USER_INFO),
        }

        with (
            patch("httpx.post", return_value=_token_response(id_token)) as mock_post,
            patch("httpx.get", side_effect=route_by_url(routes)) as mock_get,
        ):
            response = client.get(f"/google/callback?code=auth-code&state={state}")

        assert response.status_code == HTTPStatus.OK
        body = response.get_json()
        assert body["provider"] == "google"
        assert body["subject"] == "1234567890"
        assert body["email"] == "test@example.com"
        assert body["name"] == "Test User"
        assert body["user_info"] == USER_INFO

        assert mock_post.call_args[1]["data"]["code"] == "auth-code"
        requested = [c[0][0] for c in mock_get.call_args_list]
        assert requested == [GOOGLE_JWKS_URI, GOOGLE_USERINFO_ENDPOINT]
        assert mock_get.call_args_list[1][1]["headers"] == {
            "Authorization": "Bearer access-abc"
        }

    def test_successful_login_clears_flow_cookie(
        self, client: FlaskClient, sign_token, make_claims, jwks_document
    ) -> None:
        """Test that the flow cookie is removed once the login completes."""
        state, nonce = _start_login(client)
        routes = {
            GOOGLE_JWKS_URI: mock_response(json_data=jwks_document),
            GOOGLE_USERINFO_ENDPOINT: mock_response(json_data=USER_INFO),
        }

        with (
            patch("httpx.post", return_value=_token_response(sign_token(make_claims(nonce=nonce)))),
            patch("httpx.get", side_effect=route_by_url(routes)),
        ):
            response = client.get(f"/google/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.OK
        assert client.get_cookie(FLOW_COOKIE_NAME) is None

    def test_successful_salesforce_login(
        self, client: FlaskClient, sign_token, make_claims, jwks_document
    ) -> None:
        """Test that Salesforce tokens are verified against the org's issuer and keys."""
        state, nonce = _start_login(client, "salesforce")
        claims = make_claims(iss=SALESFORCE_DOMAIN, aud=SALESFORCE_CLIENT_ID, nonce=nonce)
        routes = {
            f"{SALESFORCE_DOMAIN}/id/keys": mock_response(json_data=jwks_document),
            f"{SALESFORCE_DOMAIN}/services/oauth2/userinfo": mock_response(json_data=USER_INFO),
        }

        with (
            patch("httpx.post", return_value=_token_response(sign_token(claims))),
            patch("httpx.get", side_effect=route_by_url(routes)),
        ):
            response = client.get(f"/salesforce/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.OK
        assert response.get_json()["provider"] == "salesforce"

    def test_state_mismatch(self, client: FlaskClient) -> None:
        """Test that a state other than the issued one is rejected before any exchange."""
        _start_login(client)

        with patch("httpx.post") as mock_post:
            response = client.get("/google/callback?code=c&state=S1")

        assert response.status_code == HTTPStatus.UNAUTHORIZED
        assert response.get_json()["code"] == "STATE_MISMATCH"
        mock_post.assert_not_called()

    def test_callback_without_login(self, client: FlaskClient) -> None:
        """Test that a callback with no flow cookie is rejected."""
        with patch("httpx.post") as mock_post:
            response = client.get("/google/callback?code=c&state=whatever")

        assert response.status_code == HTTPStatus.UNAUTHORIZED
        assert response.get_json()["code"] == "STATE_MISMATCH"
        mock_post.assert_not_called()

    @pytest.mark.parametrize("query", ["state=abc", "code=abc", "", "code=&state=abc"])
    def test_missing_parameters(self, client: FlaskClient, query: str) -> None:
        """Test that a callback without code or state is a 400."""
        response = client.get(f"/google/callback?{query}")

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.get_json()["code"] == "VALIDATION_FAILED"

    def test_token_exchange_failure(self, client: FlaskClient) -> None:
        """Test that a token endpoint error is a 502 and no keys are fetched."""
        state, _ = _start_login(client)
        error = mock_response(
            status_code=400,
            json_data={"error": "invalid_grant", "error_description": "Bad Request"},
        )

        with (
            patch("httpx.post", return_value=error),
            patch("httpx.get") as mock_get,
        ):
            response = client.get(f"/google/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.BAD_GATEWAY
        body = response.get_json()
        assert body["code"] == "TOKEN_EXCHANGE_FAILED"
        assert "Bad Request" in body["error"]
        mock_get.assert_not_called()

    def test_forged_token_rejected(
        self, client: FlaskClient, sign_token, make_claims, other_private_key, jwks_document
    ) -> None:
        """Test that a token signed by an unpublished key is a 401 and user info is never read."""
        state, nonce = _start_login(client)
        id_token = sign_token(make_claims(nonce=nonce), key=other_private_key)
        routes = {
            GOOGLE_JWKS_URI: mock_response(json_data=jwks_document),
            GOOGLE_USERINFO_ENDPOINT: mock_response(json_data=USER_INFO),
        }

        with (
            patch("httpx.post", return_value=_token_response(id_token)),
            patch("httpx.get", side_effect=route_by_url(routes)) as mock_get,
        ):
            response = client.get(f"/google/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.UNAUTHORIZED
        assert response.get_json()["code"] == "SIGNATURE_INVALID"
        assert [c[0][0] for c in mock_get.call_args_list] == [GOOGLE_JWKS_URI]

    @pytest.mark.parametrize(
        "overrides,code",
        [
            ({"aud": "someone-else"}, "AUDIENCE_MISMATCH"),
            ({"iss": "https://evil.example.com"}, "ISSUER_MISMATCH"),
            ({"exp": 1}, "TOKEN_EXPIRED"),
            ({"nonce": "not-the-flow-nonce"}, "NONCE_MISMATCH"),
        ],
    )
    def test_rejected_tokens(
        self,
        client: FlaskClient,
        sign_token,
        make_claims,
        jwks_document,
        overrides: dict,
        code: str,
    ) -> None:
        """Test that each claim failure is a 401 with its own error code."""
        state, nonce = _start_login(client)
        claims = make_claims(nonce=nonce)
        claims.update(overrides)
        routes = {
            GOOGLE_JWKS_URI: mock_response(json_data=jwks_document),
            GOOGLE_USERINFO_ENDPOINT: mock_response(json_data=USER_INFO),
        }

        with (
            patch("httpx.post", return_value=_token_response(sign_token(claims))),
            patch("httpx.get", side_effect=route_by_url(routes)) as mock_get,
        ):
            response = client.get(f"/google/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.UNAUTHORIZED
        assert response.get_json()["code"] == code
        assert GOOGLE_USERINFO_ENDPOINT not in [c[0][0] for c in mock_get.call_args_list]

    def test_malformed_id_token(self, client: FlaskClient) -> None:
        """Test that a garbage ID token is a 401 MALFORMED_TOKEN."""
        state, _ = _start_login(client)

        with (
            patch("httpx.post", return_value=_token_response("garbage")),
            patch("httpx.get") as mock_get,
        ):
            response = client.get(f"/google/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.UNAUTHORIZED
        assert response.get_json()["code"] == "MALFORMED_TOKEN"
        mock_get.assert_not_called()

    def test_jwks_unreachable(self, client: FlaskClient, sign_token, make_claims) -> None:
        """Test that an unreachable key set is reported as an upstream failure."""
        state, nonce = _start_login(client)

        with (
            patch("httpx.post", return_value=_token_response(sign_token(make_claims(nonce=nonce)))),
            patch("httpx.get", side_effect=httpx.ConnectTimeout("timed out")),
        ):
            response = client.get(f"/google/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.BAD_GATEWAY
        assert response.get_json()["code"] == "KEY_FETCH_FAILED"

    def test_user_info_failure(
        self, client: FlaskClient, sign_token, make_claims, jwks_document
    ) -> None:
        """Test that a user-info error after verification is a 502."""
        state, nonce = _start_login(client)
        routes = {
            GOOGLE_JWKS_URI: mock_response(json_data=jwks_document),
            GOOGLE_USERINFO_ENDPOINT: mock_response(status_code=500),
        }

        with (
            patch("httpx.post", return_value=_token_response(sign_token(make_claims(nonce=nonce)))),
            patch("httpx.get", side_effect=route_by_url(routes)),
        ):
            response = client.get(f"/google/callback?code=c&state={state}")

        assert response.status_code == HTTPStatus.BAD_GATEWAY
        assert response.get_json()["code"] == "USER_INFO_FETCH_FAILED"

    def test_replayed_callback(
        self, client: FlaskClient, sign_token, make_claims, jwks_document
    ) -> None:
        """Test that a completed flow cannot be completed again."""
        state, nonce = _start_login(client)
        flow_id = client.get_cookie(FLOW_COOKIE_NAME).value
        routes = {
            GOOGLE_JWKS_URI: mock_response(json_data=jwks_document),
            GOOGLE_USERINFO_ENDPOINT: mock_response(json_data=USER_INFO),
        }

        with (
            patch("httpx.post", return_value=_token_response(sign_token(make_claims(nonce=nonce)))),
            patch("httpx.get", side_effect=route_by_url(routes)),
        ):
            first = client.get(f"/google/callback?code=c&state={state}")
            client.set_cookie(FLOW_COOKIE_NAME, flow_id)
            second = client.get(f"/google/callback?code=c&state={state}")

        assert first.status_code == HTTPStatus.OK
        assert second.status_code == HTTPStatus.UNAUTHORIZED
        assert second.get_json()["code"] == "STATE_MISMATCH"


class TestErrorHandling:
    """Tests for JSON error rendering."""

    def test_unknown_route_is_json_404(self, client: FlaskClient) -> None:
        """Test that framework errors use the same JSON shape."""
        response = client.get("/google/unknown")

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.get_json()["code"] == "NOT_FOUND"

    def test_method_not_allowed(self, client: FlaskClient) -> None:
        """Test that only GET is routed for login."""
        response = client.post("/google/login")

        assert response.status_code == HTTPStatus.METHOD_NOT_ALLOWED
        assert response.get_json()["code"] == "METHOD_NOT_ALLOWED"
