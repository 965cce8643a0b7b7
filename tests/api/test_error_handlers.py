"""Tests for JSON error rendering."""

import inspect
from typing import Any
from unittest.mock import patch

from flask import Flask, Response
from werkzeug.exceptions import HTTPException

from openid_login.exceptions import KeyFetchError, LoginFlowException, StateMismatch


class TestErrorHandlers:
    """Tests for the registered error handlers."""

    def test_login_flow_exception_rendered_as_json(self, client: Any) -> None:
        """Test that domain errors become {"error", "code"} with their status."""
        with patch(
            "openid_login.services.login_flow.LoginFlowService.begin_login",
            side_effect=StateMismatch("custom message"),
        ):
            response = client.get("/google/login")

        assert response.status_code == 401
        assert response.get_json() == {"error": "custom message", "code": "STATE_MISMATCH"}

    def test_upstream_error_status(self, client: Any) -> None:
        """Test that upstream failures map to 502."""
        with patch(
            "openid_login.services.login_flow.LoginFlowService.begin_login",
            side_effect=KeyFetchError("down"),
        ):
            response = client.get("/google/login")

        assert response.status_code == 502
        assert response.get_json()["code"] == "KEY_FETCH_FAILED"

    def test_unexpected_exception_is_500(self, client: Any) -> None:
        """Test that unexpected errors do not leak their message."""
        with patch(
            "openid_login.services.login_flow.LoginFlowService.begin_login",
            side_effect=RuntimeError("secret detail"),
        ):
            response = client.get("/google/login")

        assert response.status_code == 500
        body = response.get_json()
        assert body["code"] == "INTERNAL_ERROR"
        assert "secret detail" not in body["error"]

    def test_handlers_declare_response_and_status(self, app: Flask) -> None:
        """Test that every registered handler is annotated to return (Response, status)."""
        handlers = app.error_handler_spec[None][None]

        for exception_class in (LoginFlowException, HTTPException, Exception):
            handler = handlers[exception_class]
            annotation = inspect.signature(handler, eval_str=True).return_annotation
            assert annotation == tuple[Response, int]
