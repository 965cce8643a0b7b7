"""API blueprints."""

from flask import Flask

from openid_login.api.auth import auth_bp
from openid_login.api.errors import register_error_handlers
from openid_login.metrics.routes import metrics_bp


def register_blueprints(app: Flask) -> None:
    """Register every blueprint and the error handlers on ``app``."""
    app.register_blueprint(auth_bp)
    app.register_blueprint(metrics_bp)
    register_error_handlers(app)
