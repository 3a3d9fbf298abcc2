"""
Performance Monitoring
Operation samples, Prometheus export and health reporting
"""

from .health import HealthCheck, HealthReport, build_health_report
from .metrics import MetricSample, MetricsCollector

__all__ = [
    "MetricSample",
    "MetricsCollector",
    "HealthCheck",
    "HealthReport",
    "build_health_report",
]
