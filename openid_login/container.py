"""Application dependency injection container."""

from dependency_injector import containers, providers

from openid_login.auth.keys import KeyResolver
from openid_login.auth.verifier import IdTokenVerifier
from openid_login.config import Settings
from openid_login.metrics.service import MetricsService
from openid_login.services.flow_state import FlowStateStore
from openid_login.services.login_flow import LoginFlowService


class AppContainer(containers.DeclarativeContainer):
    """Application service container.

    ``config`` must be overridden with a Settings instance before any
    service is resolved.
    """

    # Configuration - must be overridden by app
    config = providers.Dependency(instance_of=Settings)

    # Metrics service - exposes the global Prometheus registry
    metrics_service = providers.Singleton(MetricsService)

    # JWKS retrieval (fresh fetch per verification unless a TTL is configured)
    key_resolver = providers.Singleton(
        KeyResolver,
        http_timeout=config.provided.http_timeout_seconds,
        cache_ttl=config.provided.jwks_cache_ttl_seconds,
        min_refresh_interval=config.provided.jwks_min_refresh_seconds,
    )

    # ID token verification engine
    id_token_verifier = providers.Singleton(
        IdTokenVerifier,
        key_resolver=key_resolver,
    )

    # In-flight login flows (state + nonce per flow)
    flow_state_store = providers.Singleton(
        FlowStateStore,
        ttl_seconds=config.provided.flow_state_ttl_seconds,
        max_flows=config.provided.flow_state_max_entries,
    )

    # Login/callback orchestration across providers
    login_flow_service = providers.Singleton(
        LoginFlowService,
        settings=config,
        verifier=id_token_verifier,
        state_store=flow_state_store,
    )
