"""Prometheus scrape endpoint for login and verification metrics."""

from dependency_injector.wiring import Provide, inject
from flask import Blueprint, Response
from prometheus_client import CONTENT_TYPE_LATEST

from openid_login.metrics.service import MetricsService

metrics_bp = Blueprint("metrics", __name__, url_prefix="/metrics")


@metrics_bp.route("", methods=["GET"])
@inject
def get_metrics(
    metrics_service: MetricsService = Provide["metrics_service"],
) -> Response:
    """Expose login, ID token and JWKS counters to the scraper."""
    response = Response(metrics_service.get_metrics_text(), content_type=CONTENT_TYPE_LATEST)
    # Counters move on every login; intermediaries must not serve stale values
    response.headers["Cache-Control"] = "no-store"
    return response
