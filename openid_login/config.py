"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean application settings with lowercase fields and derived values
"""

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from openid_login.exceptions import ConfigurationError
from openid_login.providers import (
    ProviderSettings,
    google_provider,
    salesforce_provider,
)

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Core ───────────────────────────────────────────────────────────

    FLASK_ENV: str = Field(default="development")
    DEBUG: bool = Field(default=True)
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080)
    WAITRESS_THREADS: int = Field(default=4)
    HTTP_TIMEOUT_SECONDS: float = Field(default=5.0)
    JWKS_CACHE_TTL_SECONDS: int = Field(default=0)
    JWKS_MIN_REFRESH_SECONDS: int = Field(default=30)
    FLOW_STATE_TTL_SECONDS: int = Field(default=600)
    FLOW_STATE_MAX_ENTRIES: int = Field(default=10000)
    CLOCK_SKEW_SECONDS: int = Field(default=0)

    # ── Google ─────────────────────────────────────────────────────────

    GOOGLE_RESPONSE_TYPE: str = Field(default="code")
    GOOGLE_SCOPE: str = Field(default="openid email profile")
    GOOGLE_CLIENT_ID: str | None = Field(default=None)
    GOOGLE_CLIENT_SECRET: str | None = Field(default=None)
    GOOGLE_REDIRECT_URI: str | None = Field(default=None)

    # ── Salesforce ─────────────────────────────────────────────────────

    SALESFORCE_DOMAIN: str = Field(default="https://login.salesforce.com")
    SALESFORCE_RESPONSE_TYPE: str = Field(default="code")
    SALESFORCE_SCOPE: str = Field(default="openid email profile")
    SALESFORCE_CLIENT_ID: str | None = Field(default=None)
    SALESFORCE_CLIENT_SECRET: str | None = Field(default=None)
    SALESFORCE_REDIRECT_URI: str | None = Field(default=None)


class Settings(BaseModel):
    """Application settings with lowercase fields and derived values."""

    flask_env: str = "development"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8080
    waitress_threads: int = 4
    http_timeout_seconds: float = 5.0
    jwks_cache_ttl_seconds: int = 0
    jwks_min_refresh_seconds: int = 30
    flow_state_ttl_seconds: int = 600
    flow_state_max_entries: int = 10000
    clock_skew_seconds: int = 0

    # Enabled providers keyed by route name (derived in load())
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)

    @property
    def is_testing(self) -> bool:
        return self.flask_env == "testing"

    @property
    def is_production(self) -> bool:
        return self.flask_env == "production"

    def get_provider(self, name: str) -> ProviderSettings | None:
        return self.providers.get(name)

    def validate_production_config(self) -> None:
        errors: list[str] = []

        for name, provider in self.providers.items():
            prefix = name.upper()
            if not provider.client_secret:
                errors.append(
                    f"{prefix}_CLIENT_SECRET is required when {prefix}_CLIENT_ID is set"
                )
            if not provider.redirect_uri:
                errors.append(
                    f"{prefix}_REDIRECT_URI is required when {prefix}_CLIENT_ID is set"
                )

        if self.is_production and not self.providers:
            errors.append(
                "At least one of GOOGLE_CLIENT_ID or SALESFORCE_CLIENT_ID must be set in production"
            )

        if self.http_timeout_seconds <= 0:
            errors.append("HTTP_TIMEOUT_SECONDS must be positive")

        if self.flow_state_max_entries <= 0:
            errors.append("FLOW_STATE_MAX_ENTRIES must be positive")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = Environment()

        providers: dict[str, ProviderSettings] = {}

        if env.GOOGLE_CLIENT_ID:
            google = google_provider(
                client_id=env.GOOGLE_CLIENT_ID,
                client_secret=env.GOOGLE_CLIENT_SECRET,
                redirect_uri=env.GOOGLE_REDIRECT_URI,
                response_type=env.GOOGLE_RESPONSE_TYPE,
                scope=env.GOOGLE_SCOPE,
            )
            providers[google.name] = google

        if env.SALESFORCE_CLIENT_ID:
            salesforce = salesforce_provider(
                domain=env.SALESFORCE_DOMAIN,
                client_id=env.SALESFORCE_CLIENT_ID,
                client_secret=env.SALESFORCE_CLIENT_SECRET,
                redirect_uri=env.SALESFORCE_REDIRECT_URI,
                response_type=env.SALESFORCE_RESPONSE_TYPE,
                scope=env.SALESFORCE_SCOPE,
            )
            providers[salesforce.name] = salesforce

        return cls(
            flask_env=env.FLASK_ENV,
            debug=env.DEBUG,
            host=env.HOST,
            port=env.PORT,
            waitress_threads=env.WAITRESS_THREADS,
            http_timeout_seconds=env.HTTP_TIMEOUT_SECONDS,
            jwks_cache_ttl_seconds=env.JWKS_CACHE_TTL_SECONDS,
            jwks_min_refresh_seconds=env.JWKS_MIN_REFRESH_SECONDS,
            flow_state_ttl_seconds=env.FLOW_STATE_TTL_SECONDS,
            flow_state_max_entries=env.FLOW_STATE_MAX_ENTRIES,
            clock_skew_seconds=env.CLOCK_SKEW_SECONDS,
            providers=providers,
        )
