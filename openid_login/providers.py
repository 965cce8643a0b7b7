"""Identity provider descriptors.

Providers differ only in data: endpoints, issuer, client credentials and a
few extra authorization parameters. The login flow itself is shared.
"""

from pydantic import BaseModel, Field

GOOGLE = "google"
SALESFORCE = "salesforce"

GOOGLE_AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
GOOGLE_JWKS_URI = "https://www.googleapis.com/oauth2/v3/certs"
GOOGLE_USERINFO_ENDPOINT = "https://www.googleapis.com/oauth2/v3/userinfo"
GOOGLE_ISSUER = "https://accounts.google.com"


class ProviderSettings(BaseModel):
    """Everything needed to run the authorization-code flow against one provider."""

    name: str
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str
    userinfo_endpoint: str
    issuer: str
    response_type: str = "code"
    scope: str = "openid email profile"
    client_id: str
    client_secret: str | None = None
    redirect_uri: str | None = None
    extra_authorization_params: dict[str, str] = Field(default_factory=dict)


def google_provider(
    client_id: str,
    client_secret: str | None,
    redirect_uri: str | None,
    response_type: str = "code",
    scope: str = "openid email profile",
) -> ProviderSettings:
    """Describe Google's OpenID Connect endpoints."""
    return ProviderSettings(
        name=GOOGLE,
        authorization_endpoint=GOOGLE_AUTHORIZATION_ENDPOINT,
        token_endpoint=GOOGLE_TOKEN_ENDPOINT,
        jwks_uri=GOOGLE_JWKS_URI,
        userinfo_endpoint=GOOGLE_USERINFO_ENDPOINT,
        issuer=GOOGLE_ISSUER,
        response_type=response_type,
        scope=scope,
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
        extra_authorization_params={"access_type": "offline"},
    )


def salesforce_provider(
    domain: str,
    client_id: str,
    client_secret: str | None,
    redirect_uri: str | None,
    response_type: str = "code",
    scope: str = "openid email profile",
) -> ProviderSettings:
    """Describe a Salesforce org's endpoints; all of them hang off ``domain``."""
    domain = domain.rstrip("/")
    return ProviderSettings(
        name=SALESFORCE,
        authorization_endpoint=f"{domain}/services/oauth2/authorize",
        token_endpoint=f"{domain}/services/oauth2/token",
        jwks_uri=f"{domain}/id/keys",
        userinfo_endpoint=f"{domain}/services/oauth2/userinfo",
        issuer=domain,
        response_type=response_type,
        scope=scope,
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri,
    )
