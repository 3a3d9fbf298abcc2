"""Service health report."""

import time
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

HealthState = Literal["healthy", "degraded", "unhealthy"]
CheckState = Literal["pass", "warn", "fail"]

# Error share of requests above which the service reports degraded
DEGRADED_ERROR_RATE = 0.1


class _Report(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class HealthCheck(_Report):
    name: str
    status: CheckState
    message: str
    timestamp: float
    duration: float = 0.0


class HealthReport(_Report):
    status: HealthState
    uptime: float
    version: str
    capabilities: list[str]
    metrics: dict[str, Any]
    checks: list[HealthCheck]


def build_health_report(
    *,
    version: str,
    started_at: float,
    request_count: int,
    error_count: int,
    metrics_summary: dict[str, Any],
    data_status: dict[str, Any],
    now: Optional[float] = None,
) -> HealthReport:
    """
    Summarize service health.

    Status is ``unhealthy`` without catalog data, otherwise ``degraded``
    when more than 10% of requests failed, otherwise ``healthy``.

    Args:
        version: Server version
        started_at: Wall-clock start time (seconds)
        request_count: Tool calls handled
        error_count: Tool calls that failed
        metrics_summary: MetricsCollector.get_summary() output
        data_status: CatalogDataService.health_status() output
        now: Wall-clock time override

    Returns:
        HealthReport
    """
    now = time.time() if now is None else now

    status: HealthState = "healthy"
    if error_count / max(request_count, 1) > DEGRADED_ERROR_RATE:
        status = "degraded"
    has_data = bool(data_status.get("hasData"))
    if not has_data:
        status = "unhealthy"

    successes = int(data_status.get("refreshSuccesses", 0))
    failures = int(data_status.get("refreshFailures", 0))

    checks = [
        HealthCheck(
            name="data_service",
            status="pass" if has_data else "fail",
            message=(
                f"Data service operational with {data_status.get('componentCount', 0)} components"
                if has_data
                else "Data service has no component data"
            ),
            timestamp=now,
        ),
        HealthCheck(
            name="cache_service",
            status="pass",
            message="Cache service is operational",
            timestamp=now,
        ),
        HealthCheck(
            name="refresh_source",
            status="warn" if failures > successes else "pass",
            message=f"Refresh: {successes} successful, {failures} failed runs",
            timestamp=now,
        ),
    ]

    return HealthReport(
        status=status,
        uptime=max(0.0, now - started_at),
        version=version,
        capabilities=["tools"],
        metrics={
            "requestCount": request_count,
            "errorCount": error_count,
            "averageResponseTime": metrics_summary.get("averageResponseTime", 0.0),
            "cacheHitRate": metrics_summary.get("cacheHitRate", 0.0),
        },
        checks=checks,
    )


__all__ = ["HealthCheck", "HealthReport", "build_health_report", "DEGRADED_ERROR_RATE"]
