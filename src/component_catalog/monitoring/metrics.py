"""
Metrics Collection
Bounded ring of operation samples, mirrored into Prometheus metrics.
"""

import time
from collections import Counter as Tally
from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


@dataclass(frozen=True)
class MetricSample:
    """One completed catalog operation."""

    operation_name: str
    duration: float  # milliseconds
    cache_hit: bool = False
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class MetricsCollector:
    """
    Keeps the most recent ``capacity`` samples and derives aggregates from them.

    Aggregates are computed over the current buffer only; older samples are
    dropped oldest-first as new ones arrive. Prometheus counters keep running
    totals on a registry owned by this collector.

    Examples:
        >>> collector = MetricsCollector(capacity=2)
        >>> for name in ("a", "b", "c"):
        ...     collector.record(MetricSample(name, 1.0))
        >>> [s.operation_name for s in collector.get_metrics()]
        ['b', 'c']
    """

    def __init__(self, capacity: int = 1000, registry: Optional[CollectorRegistry] = None) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")

        self.capacity = capacity
        self._samples: deque[MetricSample] = deque(maxlen=capacity)
        self.registry = registry or CollectorRegistry()

        self.operations_total = Counter(
            "catalog_operations_total",
            "Total number of catalog operations",
            ["operation", "cache"],
            registry=self.registry,
        )
        self.operation_duration = Histogram(
            "catalog_operation_duration_seconds",
            "Catalog operation duration in seconds",
            ["operation"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
            registry=self.registry,
        )
        self.errors_total = Counter(
            "catalog_errors_total",
            "Total number of failed tool calls",
            ["error_code", "tool"],
            registry=self.registry,
        )
        self.cache_entries = Gauge(
            "catalog_cache_entries",
            "Current number of cache entries",
            ["cache_type"],
            registry=self.registry,
        )

    def record(self, sample: MetricSample) -> None:
        """Append a sample, dropping the oldest beyond capacity."""
        self._samples.append(sample)
        self.operations_total.labels(
            operation=sample.operation_name, cache="hit" if sample.cache_hit else "miss"
        ).inc()
        self.operation_duration.labels(operation=sample.operation_name).observe(
            sample.duration / 1000.0
        )

    def record_error(self, error_code: str, tool: str) -> None:
        """Count a failed tool call."""
        self.errors_total.labels(error_code=error_code, tool=tool).inc()

    def set_cache_size(self, cache_type: str, entries: int) -> None:
        self.cache_entries.labels(cache_type=cache_type).set(entries)

    def get_metrics(self, operation_name: Optional[str] = None) -> list[MetricSample]:
        """Samples in arrival order, optionally for one operation."""
        if operation_name:
            return [s for s in self._samples if s.operation_name == operation_name]
        return list(self._samples)

    def get_average_response_time(self, operation_name: Optional[str] = None) -> float:
        samples = self.get_metrics(operation_name)
        if not samples:
            return 0.0
        return sum(s.duration for s in samples) / len(samples)

    def get_cache_hit_rate(self, operation_name: Optional[str] = None) -> float:
        samples = self.get_metrics(operation_name)
        if not samples:
            return 0.0
        return sum(1 for s in samples if s.cache_hit) / len(samples)

    def get_operation_counts(self) -> dict[str, int]:
        return dict(Tally(s.operation_name for s in self._samples))

    def get_summary(self) -> dict[str, Any]:
        """Aggregate view of the buffer (camelCase keys, protocol-ready)."""
        return {
            "totalOperations": len(self._samples),
            "averageResponseTime": self.get_average_response_time(),
            "cacheHitRate": self.get_cache_hit_rate(),
            "operationCounts": self.get_operation_counts(),
        }

    def clear(self) -> None:
        """Drop buffered samples (Prometheus totals are kept)."""
        self._samples.clear()

    def export(self) -> bytes:
        """Prometheus text exposition of this collector's registry."""
        return generate_latest(self.registry)

    def __len__(self) -> int:
        return len(self._samples)


__all__ = ["MetricSample", "MetricsCollector"]
