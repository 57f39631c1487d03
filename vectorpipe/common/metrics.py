"""Metrics collection for the vector pipe service.

A thin convenience wrapper around ``prometheus_client`` so the consumer loop
and the vectorization client record counts with consistent label sets.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- Each collector owns a registry (inject one in tests to read samples back)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        # Pipe consumer metrics
        self.pipe_sessions = Counter(
            'vector_pipe_sessions_total',
            'Total named pipe read sessions opened',
            registry=self.registry
        )

        self.pipe_records = Counter(
            'vector_pipe_records_total',
            'Total records consumed from the named pipe by outcome',
            ['outcome'],
            registry=self.registry
        )

        # Vectorization client metrics
        self.vectorization_requests = Counter(
            'vectorization_requests_total',
            'Total vectorization requests by status',
            ['status'],
            registry=self.registry
        )

        self.vectorization_duration = Histogram(
            'vectorization_duration_seconds',
            'Vectorization round trip duration',
            registry=self.registry
        )

    def record_pipe_session(self) -> None:
        """Record that a read session was opened on the pipe."""
        self.pipe_sessions.inc()

    def record_pipe_record(self, outcome: str) -> None:
        """Record one consumed line with its validation outcome."""
        self.pipe_records.labels(outcome=outcome).inc()

    def record_vectorization(self, status: str, duration: float) -> None:
        """Record a vectorization call.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.vectorization_requests.labels(status=status).inc()
        self.vectorization_duration.observe(duration)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format."""
        return generate_latest(self.registry).decode('utf-8')


_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
        logger.debug("Metrics collector created", service=service_name)
    return _metrics_collector
