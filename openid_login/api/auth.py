"""Login and callback routes, one pair per configured identity provider."""

from __future__ import annotations

import logging
from typing import Any

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, Response, make_response, redirect, request
from pydantic import BaseModel, Field

from openid_login.exceptions import ValidationException
from openid_login.services.login_flow import LoginFlowService

logger = logging.getLogger(__name__)

FLOW_COOKIE_NAME = "oidc_flow"

auth_bp = Blueprint("auth", __name__)


class LoginResponse(BaseModel):
    """Response for a completed login."""

    provider: str = Field(description="Identity provider route name")
    subject: str | None = Field(default=None, description="User subject from the ID token")
    email: str | None = Field(default=None, description="User email")
    name: str | None = Field(default=None, description="User display name")
    user_info: dict[str, Any] = Field(default_factory=dict, description="Provider user-info document")


@auth_bp.route("/", methods=["GET"])
def index() -> Response:
    """Liveness endpoint."""
    return make_response("hello", 200)


@auth_bp.route("/<provider>/login", methods=["GET"])
@inject
def login(
    provider: str,
    login_flow_service: LoginFlowService = Provide["login_flow_service"],
) -> Response:
    """Redirect the browser to the provider's authorization endpoint."""
    authorization_url, flow_id = login_flow_service.begin_login(provider)
    redirect_uri = login_flow_service.get_client(provider).provider.redirect_uri or ""

    response = make_response(redirect(authorization_url))
    response.set_cookie(
        FLOW_COOKIE_NAME,
        flow_id,
        httponly=True,
        secure=redirect_uri.startswith("https"),
        samesite="Lax",
        max_age=int(login_flow_service.flow_ttl_seconds),
        path="/",
    )

    return response


@auth_bp.route("/<provider>/callback", methods=["GET"])
@inject
def callback(
    provider: str,
    login_flow_service: LoginFlowService = Provide["login_flow_service"],
) -> Response:
    """Complete the login: check state, exchange the code, verify the ID token."""
    code = request.args.get("code")
    state = request.args.get("state")

    if not code:
        raise ValidationException("Missing code parameter")
    if not state:
        raise ValidationException("Missing state parameter")

    result = login_flow_service.complete_login(
        provider,
        flow_id=request.cookies.get(FLOW_COOKIE_NAME),
        code=code,
        state=state,
    )

    response = make_response(
        LoginResponse(
            provider=result.provider,
            subject=result.subject,
            email=result.email,
            name=result.name,
            user_info=result.user_info,
        ).model_dump(),
        200,
    )
    response.delete_cookie(FLOW_COOKIE_NAME, path="/")

    return response
