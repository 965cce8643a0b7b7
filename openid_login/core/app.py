"""Flask application factory."""

import logging

from openid_login.config import Settings
from openid_login.container import AppContainer
from openid_login.core.flask_app import App

logger = logging.getLogger(__name__)


def create_app(settings: "Settings | None" = None) -> App:
    """Create and configure the Flask application.

    Args:
        settings: Optional settings instance (loaded from the environment
            if not provided)

    Returns:
        Configured Flask application instance

    Raises:
        ConfigurationError: If the settings fail validation
    """
    app = App(__name__)

    # Load configuration
    if settings is None:
        settings = Settings.load()

    # Validate configuration before proceeding
    settings.validate_production_config()

    app.config["DEBUG"] = settings.debug
    app.config["TESTING"] = settings.is_testing

    # Initialize service container
    container = AppContainer()
    container.config.override(settings)

    # Wire container with the API modules
    container.wire(
        modules=[
            "openid_login.api.auth",
            "openid_login.metrics.routes",
        ]
    )

    app.container = container

    # Register blueprints and error handlers
    from openid_login.api import register_blueprints

    register_blueprints(app)

    logger.info(
        "Application created with providers: %s",
        ", ".join(app.provider_names) or "none",
    )

    return app
