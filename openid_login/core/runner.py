"""Application runner."""

import logging
import sys

from waitress import serve

from openid_login.config import Settings
from openid_login.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def run() -> None:
    """Run the login server on the configured port.

    Handles:
    - Logging setup
    - App creation via create_app()
    - Development vs production server selection

    A configuration error at startup is fatal and exits with status 1.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Import here to avoid circular imports
    from openid_login.core.app import create_app

    try:
        settings = Settings.load()
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error("Failed to start server: %s", e)
        sys.exit(1)

    debug_mode = settings.flask_env in ("development", "testing")

    if debug_mode:
        app.logger.info("Running in debug mode")
        app.run(host=settings.host, port=settings.port, debug=True)
    else:
        app.logger.info(
            "Using Waitress WSGI server with %d threads", settings.waitress_threads
        )
        serve(app, host=settings.host, port=settings.port, threads=settings.waitress_threads)
