"""Prometheus metrics service for application monitoring.

Services own their metrics directly as module-level collectors (see
``openid_login.auth.verifier`` and ``openid_login.auth.keys``). Everything
registered with the global Prometheus registry is included in the output of
get_metrics_text().
"""

from prometheus_client import generate_latest


class MetricsService:
    """Renders the global Prometheus registry."""

    def get_metrics_text(self) -> str:
        """Generate metrics in Prometheus text format."""
        return generate_latest().decode("utf-8")
