"""Prometheus metrics module."""

from openid_login.metrics.service import MetricsService

__all__ = [
    "MetricsService",
]
